# lore

`lore` is a library for reading Claude Code conversation transcripts. These
are the `.jsonl` files that Claude Code writes for every session. The library
finds them, reads their metadata, searches their text, adds up their token
usage and builds an activity heatmap from them. It has no dependencies
outside the standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
python -m pytest
```

## Finding sessions

```python
import os
from lore.session import scan_sessions

sessions, warnings = scan_sessions(os.path.expanduser("~/.claude/projects"))
for s in sessions:  # newest first
    print(s.timestamp, s.project, s.branch, s.slug, s.query)
```

`scan_sessions(root_dir)` walks a directory for `*.jsonl` files and skips
anything under a `subagents` directory. It returns a list of `Session`
objects and a list of warnings. A file that cannot be read or parsed does not
stop the scan. Instead it adds one warning of the form `<path>: <reason>`.

A `Session` has the fields `id`, `path`, `cwd`, `project` (the last part of
`cwd`), `branch`, `slug`, `query` and `timestamp`, which is a time-zone-aware
`datetime`. These values come from the first user event in the file. `query`
is the first user message that still has text once system-injected tags
(caveats, slash-command tags, system reminders) have been removed.

`parse_session_metadata(stream)` reads one stream of lines. It raises
`SessionParseError`, a `ValueError`, if the stream has no user event or if
that event's timestamp cannot be parsed. The helpers `extract_query`,
`strip_system_tags` and `collapse_whitespace` are public too.

## Searching

```python
from lore.search import parse_search_query, search_sessions_filtered

text, filters = parse_search_query("project:lore branch:main refresh token")
for hit in search_sessions_filtered(sessions, text, filters):
    print(hit.hit_count, hit.session.slug, hit.snippet)
```

`parse_search_query` takes `project:` and `branch:` out of a query and
returns them as `SearchFilters`. These prefixes may appear anywhere in the
query and are matched in any case. `search_sessions_filtered` first keeps the
sessions whose project and branch match, ignoring case. If no free text is
left in the query, every remaining session is returned as a hit with a count
of one.

`search_sessions(sessions, query)` ignores case. It counts matches in user
text and in assistant `text` blocks. It skips tool calls, thinking blocks and
user events that hold only tool results. Results are sorted by hit count,
then newest first. An empty query returns no results. Each `SearchHit` has a
snippet of at most 80 characters taken from the first match. Its cut ends are
marked with `...`. A transcript that cannot be opened is left out of the
results.

## Usage and cost

```python
from lore.stats import compute_stats_rows, format_token_count

for row in compute_stats_rows(sessions):
    st = row.stats
    print(row.session.project, st.model,
          format_token_count(st.input_tokens),
          format_token_count(st.output_tokens),
          f"${st.estimated_cost_usd:.2f}")
```

`parse_session_stats(stream)` adds up the input, output, cache-read and
cache-write tokens of every assistant event. It uses the last model name it
sees. Malformed lines are skipped. `compute_stats_rows` gives empty stats to
any transcript it cannot read.

`estimate_cost` uses the first entry in the price table whose `substr`
appears in the lower-cased model name. An empty or unknown model costs 0.
The built-in table covers `opus`, `sonnet` and `haiku`.

To use your own prices, set the environment variable `LORE_PRICING_FILE` to
a JSON file. The file holds a list of objects with the keys `substr`,
`input_per_mtok`, `output_per_mtok` and `cache_read_fraction`. If the file
cannot be read or is invalid, the built-in table is used. `pricing_table()`
loads the table once. Call `reset_pricing_table()` after you change the
variable.

`format_token_count` shows counts below 1000 as they are. Larger counts get
one decimal place and a suffix, as in `1.5k` or `2.5M`.

## Activity heatmap

```python
from datetime import datetime, timezone
from lore.timeline import build_heatmap, heatmap_bucket

now = datetime.now(timezone.utc)
hm = build_heatmap(sessions, now)
print(hm.earliest_day(), "to", hm.latest_day())
print(hm.count_on(now), "sessions today")
```

The heatmap has seven rows, Monday to Sunday, and eight columns, one per
week. The rightmost column is the week that holds `now`. Each cell in
`hm.cells[row][col]` is a `HeatmapDay` with a `date` and a `count`.

- `count_on(day)` returns 0 for a day outside the grid.
- `cell_of(day)` returns `(row, col)`, or `None` for a day outside the grid.
- `heatmap_bucket(count)` maps a count to an intensity from 0 to 3: none,
  1–2, 3–5, or 6 or more.
- `start_of_day` and `monday_of` are the date helpers that the heatmap uses.

## Text helpers

- `lore.wrap`: `wrap_text` and `wrap_paragraph` soft-wrap text at spaces and
  hard-cut words that are too long. `truncate_runes` shortens text and ends
  it with `…`. It raises `ValueError` for a negative limit. `rune_prefix`
  returns the first n characters. All of these count characters, not bytes.
- `lore.viewport`: `clamp_offset` keeps a cursor line inside a window of a
  fixed height. `slice_lines` returns exactly that many lines, padded with
  empty strings.

## Re-running prompts

`lore.rerun.rerun_claude(prompt, cwd)` and `resume_claude(session_id, cwd)`
each return a command, which is a function that takes no arguments. Calling
the command runs the `claude` executable in `cwd`, either with the prompt or
with `--resume <session_id>`, and waits for it to finish. It returns a
`RerunDone`. The `error` of that `RerunDone` is `None` on success and
otherwise holds the exception. If `claude` is not on `PATH`, the command
returns a `RerunDone` whose `error` is a `FileNotFoundError` and does not
start any process.

## What it does not do

`lore` is a library only. It has no command-line program and no interactive
terminal screen for browsing sessions. It does not render any views or
handle key bindings. It stores nothing of its own, such as bookmarks. It
only reads transcript files.