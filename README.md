# crawlmodels

Data models for a web crawler. The package has two parts:

- a tree of crawl items that records where each URL came from and what state it is in;
- a URL type that renders addresses in a stable, canonical form.

## Installation

```
pip install crawlmodels
```

To run the test suite:

```
pip install "crawlmodels[test]"
pytest
```

## URLs (`crawlmodels.url`)

`URL(raw, hops=0, redirects=0)` wraps a raw address. `parse()` turns it
into a `ParsedURL`. It raises `ValueError` if the address is not an
absolute URL or an absolute path. After parsing, `str(url)` gives the
canonical form, which is computed once and then cached:

- non-ASCII host names are IDNA-encoded; ports and IPv6 literals are kept;
- the query string is decoded and encoded again in the order the keys first appear, without sorting;
- queries on a few hosts whose query strings carry signatures are left exactly as written;
- a non-ASCII path is percent-encoded.

```python
from crawlmodels.url import URL

u = URL("http://παράδειγμα.δοκιμή/Αρχική_σελίδα")
u.parse()
print(str(u))
# http://xn--hxajbheg2az3al.xn--jxalpdlp/%CE%91%CF%81%CF%87%CE%B9%CE%BA%CE%AE_%CF%83%CE%B5%CE%BB%CE%AF%CE%B4%CE%B1
```

Calling `str()` on a URL that has not been parsed raises `ValueError`.

Other parts of the module:

- `url_to_string(parsed)` renders a `ParsedURL` in the same canonical form.
- `encode_query(pairs)` URL-encodes a mapping of keys to lists of values and keeps their order. For example, `encode_query({"q": ["a b"]})` gives `"q=a+b"`.
- `hops` and `redirects` are plain counters. `inc_redirects()` adds one to `redirects`.
- `request`, `response` and `mimetype` are free attributes for the caller's own data.
- `body` holds a fetched body as a binary file object.
- `get_document()` parses `body` as HTML with BeautifulSoup, caches the result in `document` and rewinds the body.
- `rewind_body()` seeks the body back to its start.
- Both `get_document()` and `rewind_body()` raise `ValueError` when there is no body.

## Item trees (`crawlmodels.item`)

An `Item(id, url, seed_via="")` is one URL in the crawl. Its ID must be
non-empty and its URL must be given; otherwise the constructor raises
`ValueError`. A seed is an item with no parent. Discovered assets and
redirections are attached with `add_child(child, from_state)`, where
`from_state` is `ItemState.GOT_CHILDREN` or `ItemState.GOT_REDIRECTED`.
The parent takes that state and the child is reset to `ItemState.FRESH`.

```python
from crawlmodels.item import Item, ItemState
from crawlmodels.url import URL

seed = Item("seed-1", URL("https://example.com/"), "manual")
asset = Item("asset-1", URL("https://example.com/style.css"))
seed.add_child(asset, ItemState.GOT_CHILDREN)

asset.depth                            # 1
seed.max_depth                         # 1
seed.nodes_at_level(seed.max_depth)    # [asset]
asset.seed is seed                     # True
seed.check_consistency()               # raises ConsistencyError if broken
```

### Properties

| Property | Meaning |
| --- | --- |
| `children` | A snapshot list of the item's children. |
| `depth` | Distance from the seed. |
| `depth_without_redirections` | Distance from the seed, not counting redirection hops. |
| `max_depth` | Height of the subtree below the item. |
| `seed` | The topmost ancestor. |
| `short_id` | The first five characters of the ID, after a `seed-` or `asset-` prefix if present. |
| `is_seed`, `is_child`, `is_redirection` | The item's place in the tree. |
| `has_children`, `has_redirection`, `has_work` | Whether the item has children or a redirection, and whether it still needs processing. |
| `source` | An `ItemSource`. Setting `INSERT`, `QUEUE` or `HQ` on a non-seed raises `ItemError`. |

`status`, `base`, `error`, `seed_via`, `parent`, `id` and `url` are plain
attributes.

### Methods

- `nodes_at_level(level)` returns the items at one level below a seed.
- `remove_child(child)` detaches the child with a matching ID.
- `traverse(fn)` calls `fn` on every item, depth first.
- `complete_and_check()` marks finished branches as completed and returns whether the seed is done.
- `mark_completed(node)` marks finished branches as completed without checking the seed.
- `str(ItemState.GOT_CHILDREN)` gives `"GotChildren"`.

### Errors

Errors derive from `ItemError`:

- `NotASeedError` is raised by `nodes_at_level()` when it is called on an item that is not a seed.
- `ConsistencyError` is raised by `check_consistency()`.
- `FailedAtPreprocessorError`, `FailedAtArchiverError` and `FailedAtPostprocessorError` are available for recording pipeline failures in `Item.error`.

## Tree utilities (`crawlmodels.tree`)

```python
from crawlmodels.tree import dedupe_items, draw_tree, draw_tree_with_status, flatten_tree

print(draw_tree(seed), end="")
# seed-1
# └── asset-1
print(draw_tree_with_status(seed), end="")
# seed-1 - GotChildren
# └── asset-1 - Fresh
```

- `flatten_tree(root)` lists every item of a tree in depth-first order, starting with the root.
- `draw_tree(item)` and `draw_tree_with_status(item)` draw the whole tree that the item belongs to, starting from its seed.
- `dedupe_items(seed)` removes items whose canonical URL already appears elsewhere in the tree, then marks finished branches as completed:
  - the first item found for a URL is kept;
  - a later duplicate that is completed replaces an earlier one that is not;
  - it raises `NotASeedError` when given a non-seed;
  - the URLs involved must have been parsed.

## What this package does not do

It only models URLs and item trees. It does not:

- fetch pages;
- extract links;
- schedule or queue work;
- write archives;
- persist items anywhere.

The `request`, `response`, `body` and `mimetype` attributes of `URL` only
carry data that the caller supplies.