# ferox

`ferox` is a library of the parts a recursive web content discovery tool is
built from. It is used from Python code; it has no command of its own.

- `ferox.response`: `FeroxResponse`, a record of one HTTP response with line,
  word and content-length counts, `is_file` / `is_directory` guesses,
  `reached_max_depth`, a terminal report line (`as_str`) and NDJSON
  serialisation (`as_json`, `to_dict`, `from_json`). Build one from a
  `requests.Response` with `FeroxResponse.from_http`. The helpers
  `path_length_of_url` and `url_depth` work on plain url strings.
- `ferox.filters`: `StatusCodeFilter`, `LinesFilter`, `WordsFilter`,
  `SizeFilter`, `RegexFilter`, `SimilarityFilter` and `WildcardFilter`, all
  subclasses of `FeroxFilter`, kept together in a thread-safe `FeroxFilters`
  collection. `initialize(...)` adds user-supplied filters to a collection.
- `ferox.fuzzyhash`: context-triggered piecewise hashing (`fuzzy_hash`) and a
  0–100 similarity score between two hashes (`compare`).
- `ferox.context`: `ScanContext`, which holds a scan's settings (status
  codes, output level, proxy, timeout, headers, slash and query options,
  denylist, depth), its filters, the urls already seen and the results.
- `ferox.extractor`: `ExtractorBuilder` and `Extractor`, which pull links out
  of response bodies and `robots.txt` and request them.
- `ferox.heuristics`: `HeuristicTests`, with connectivity checks and wildcard
  (custom 404) detection.
- `ferox.message` and `ferox.logger`: `FeroxMessage` log entries that print as
  coloured lines or NDJSON, and a logging handler that can mirror them to a
  debug log file.
- `ferox.progress`: `add_bar` creates tqdm progress bars of the kinds listed
  in `BarType`.
- `ferox.constants`: default status codes, similarity threshold and the
  `OutputLevel` enumeration (`DEFAULT`, `QUIET`, `SILENT`).

## Installing

```
pip install .
pip install ".[test]"   # with pytest and responses for the test suite
```

## Filtering responses

```python
from ferox.response import FeroxResponse
from ferox.filters import FeroxFilters, StatusCodeFilter, WildcardFilter

resp = FeroxResponse()
resp.set_url("http://localhost/stuff")
resp.set_text("pellentesque diam volutpat commodo sed egestas egestas fringilla")

filters = FeroxFilters()
filters.push(StatusCodeFilter(filter_code=404))
filters.push(WildcardFilter(size=0, dynamic=59))

if filters.should_filter_response(resp):
    print("hidden:", resp.as_str())
```

A `WildcardFilter` hides a response whose content length equals its `size`,
or equals its `dynamic` value plus the length of the last segment of the
url's path, which is how reflected custom 404 pages are caught. With
`dont_filter=True` it hides nothing. Pushing a filter equal to one already in
a `FeroxFilters` does nothing; the collection counts how many responses its
wildcard filters have hidden in `wildcards_filtered`.

## Near-duplicate pages

```python
from ferox.fuzzyhash import fuzzy_hash, compare

score = compare(fuzzy_hash("some page body ..."), fuzzy_hash("another page body ..."))
```

`compare` raises `ValueError` for a malformed hash. `SimilarityFilter` hides a
response when its body scores at or above the filter's `threshold` against
the stored hash in `text`, and does not hide it when the comparison fails.

## Link extraction

```python
from ferox.context import ScanContext
from ferox.extractor import ExtractorBuilder, ExtractionTarget

context = ScanContext()
extractor = (
    ExtractorBuilder()
    .url("http://localhost")
    .target(ExtractionTarget.ROBOTS_TXT)
    .context(context)
    .build()
)
links = extractor.extract()
extractor.request_links(links)
```

`build` raises `ValueError` unless a url or a response, and a context, were
given. `get_sub_paths_from_path("homepage/assets/img/icons/handshake.svg")`
returns the fragment itself followed by each of its parent directories with a
trailing slash. Body extraction keeps only links on the response's own host.
`request_links` reports files to the context and hands directories to
`ScanContext.try_recursion`, which queues them in `recursion_queue`.

## Heuristics

`HeuristicTests(context).connectivity(urls)` returns the targets that answer
and raises `ConnectionError` if none do. `wildcard(url)` requests random
paths, adds a matching `WildcardFilter` to the context's filters and returns
the number of requests it made (0 when `dont_filter` is set).

## Logging

`ferox.logger.initialize(verbosity, debug_log, json_output)` installs a
`FeroxLogHandler` on the root logger. Each record is printed as a
`FeroxMessage` and, when `debug_log` is a path, appended to that file as text
or NDJSON. `level_for_verbosity` maps a count of `-v` flags to a pair of
logging levels for the `ferox` logger and for everything else; the
`FEROX_LOG` environment variable, when set to a level name, overrides both.

## What this package does not do

There is no command-line program, no wordlist-driven scan loop and no
recursive scan scheduler: `ScanContext.recursion_queue` only collects
directories for a caller to scan. There is no configuration-file loading, no
banner, no results file writer, no scan state to save or resume, and no
statistics beyond the counters on `ScanContext` (`links_extracted`,
`total_expected`, `errors`). Requests are made one at a time with `requests`.