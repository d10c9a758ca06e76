from datetime import datetime, timezone

import pytest

from lore.search import (
    SearchFilters,
    SearchHit,
    build_snippet,
    count_and_snippet,
    match_assistant_event,
    match_user_event,
    parse_search_query,
    search_session,
    search_sessions,
    search_sessions_filtered,
)
from lore.session import Session


def _ts(text):
    return datetime.fromisoformat(text.replace("Z", "+00:00"))


def _write(tmp_path, name, content):
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return str(path)


def _user_line(sid, ts, content):
    return (
        '{"type":"user","sessionId":"%s","timestamp":"%s","cwd":"/test",'
        '"gitBranch":"main","slug":"s%s","message":{"content":%s}}' % (sid, ts, sid, content)
    )


def test_empty_query_returns_empty():
    sessions = [Session(id="1", slug="s1", path="/tmp/nonexistent")]
    assert search_sessions(sessions, "") == []


def test_no_matches_returns_empty(tmp_path):
    path = _write(tmp_path, "sess1.jsonl", "\n".join([
        _user_line("1", "2026-05-01T10:00:00Z", '"hello world"'),
        '{"type":"assistant","message":{"content":[{"type":"text","text":"goodbye world"}]}}',
    ]))
    assert search_sessions([Session(id="1", path=path)], "xyz123notfound") == []


def test_matches_user_content_case_insensitive(tmp_path):
    path = _write(tmp_path, "sess1.jsonl", "\n".join([
        _user_line("1", "2026-05-01T10:00:00Z", '"refresh token rotation"'),
        '{"type":"assistant","message":{"content":[{"type":"text","text":"here is the code"}]}}',
    ]))
    results = search_sessions([Session(id="1", path=path)], "REFRESH")
    assert len(results) == 1
    assert results[0].hit_count == 1


def test_matches_assistant_content(tmp_path):
    path = _write(tmp_path, "sess1.jsonl", "\n".join([
        _user_line("1", "2026-05-01T10:00:00Z", '"what is auth?"'),
        '{"type":"assistant","message":{"content":[{"type":"text","text":'
        '"Authentication is the process of verifying identity"}]}}',
    ]))
    results = search_sessions([Session(id="1", path=path)], "Authentication")
    assert len(results) == 1
    assert results[0].hit_count == 1


def test_skips_tool_use_blocks(tmp_path):
    path = _write(tmp_path, "sess1.jsonl", "\n".join([
        _user_line("1", "2026-05-01T10:00:00Z", '"we need to fix authentication"'),
        '{"type":"assistant","message":{"content":[{"type":"tool_use","name":"search",'
        '"input":{"query":"authentication system"}},{"type":"text","text":'
        '"found something about authentication"}]}}',
    ]))
    results = search_sessions([Session(id="1", path=path)], "authentication")
    assert len(results) == 1
    assert results[0].hit_count == 2


def test_skips_thinking_blocks(tmp_path):
    path = _write(tmp_path, "sess1.jsonl", "\n".join([
        _user_line("1", "2026-05-01T10:00:00Z", '"what should I do?"'),
        '{"type":"assistant","message":{"content":[{"type":"thinking","thinking":'
        '"Let me think about authentication"},{"type":"text","text":"here is my answer"}]}}',
    ]))
    assert search_sessions([Session(id="1", path=path)], "authentication") == []


def test_skips_tool_result_only_user_events(tmp_path):
    path = _write(tmp_path, "sess1.jsonl", "\n".join([
        _user_line("1", "2026-05-01T10:00:00Z", '"search for tokens"'),
        '{"type":"assistant","message":{"content":[{"type":"text","text":"ok"}]}}',
        '{"type":"user","message":{"content":[{"type":"tool_result","content":"found token in file.js"}]}}',
    ]))
    results = search_sessions([Session(id="1", path=path)], "token")
    assert len(results) == 1
    assert results[0].hit_count == 1


def test_multiple_matches_counted(tmp_path):
    path = _write(tmp_path, "sess1.jsonl", "\n".join([
        _user_line("1", "2026-05-01T10:00:00Z", '"refresh the cache"'),
        '{"type":"assistant","message":{"content":[{"type":"text","text":"ok, refreshing"},'
        '{"type":"text","text":"refresh complete"}]}}',
    ]))
    results = search_sessions([Session(id="1", path=path)], "refresh")
    assert len(results) == 1
    assert results[0].hit_count == 3


def test_results_sorted_by_hit_count(tmp_path):
    p1 = _write(tmp_path, "sess1.jsonl", _user_line("1", "2026-05-01T10:00:00Z", '"token token"'))
    p2 = _write(tmp_path, "sess2.jsonl", _user_line("2", "2026-05-01T11:00:00Z", '"token"'))
    p3 = _write(tmp_path, "sess3.jsonl", _user_line("3", "2026-05-01T12:00:00Z", '"token token token"'))
    sessions = [
        Session(id="1", path=p1, timestamp=_ts("2026-05-01T10:00:00Z")),
        Session(id="2", path=p2, timestamp=_ts("2026-05-01T11:00:00Z")),
        Session(id="3", path=p3, timestamp=_ts("2026-05-01T12:00:00Z")),
    ]
    results = search_sessions(sessions, "token")
    assert [r.hit_count for r in results] == [3, 2, 1]


def test_tiebreak_by_timestamp_descending(tmp_path):
    p1 = _write(tmp_path, "sess1.jsonl", _user_line("1", "2026-05-01T10:00:00Z", '"auth"'))
    p2 = _write(tmp_path, "sess2.jsonl", _user_line("2", "2026-05-01T11:00:00Z", '"auth"'))
    sessions = [
        Session(id="1", path=p1, timestamp=_ts("2026-05-01T10:00:00Z")),
        Session(id="2", path=p2, timestamp=_ts("2026-05-01T11:00:00Z")),
    ]
    results = search_sessions(sessions, "auth")
    assert [r.session.id for r in results] == ["2", "1"]


def test_snippet_from_first_match(tmp_path):
    path = _write(tmp_path, "sess1.jsonl", _user_line(
        "1", "2026-05-01T10:00:00Z", '"the quick brown fox jumps over the lazy dog"'))
    results = search_sessions([Session(id="1", path=path)], "brown")
    assert len(results) == 1
    assert results[0].snippet == "the quick brown fox jumps over the lazy dog"
    assert len(results[0].snippet) <= 80


def test_snippet_centers_match(tmp_path):
    content = "a" * 44 + "bbbbcccc"
    path = _write(tmp_path, "sess1.jsonl", _user_line("1", "2026-05-01T10:00:00Z", '"%s"' % content))
    results = search_sessions([Session(id="1", path=path)], "cccc")
    assert len(results) == 1
    assert "cccc" in results[0].snippet


def test_multiple_text_blocks(tmp_path):
    path = _write(tmp_path, "sess1.jsonl", _user_line(
        "1", "2026-05-01T10:00:00Z",
        '[{"type":"text","text":"first block"},{"type":"text","text":"second block"}]'))
    results = search_sessions([Session(id="1", path=path)], "block")
    assert len(results) == 1
    assert results[0].hit_count == 2


def test_malformed_lines_are_skipped(tmp_path):
    path = _write(tmp_path, "sess1.jsonl", "\n".join([
        "not json",
        _user_line("1", "2026-05-01T10:00:00Z", '"needle here"'),
    ]))
    hit = search_session(Session(id="1", path=path), "needle")
    assert hit == SearchHit(session=Session(id="1", path=path), hit_count=1, snippet="needle here")


def test_build_snippet_short_text_unchanged():
    assert build_snippet("hello world", "world", 6) == "hello world"


def test_build_snippet_long_text_match_early():
    text = ("a very short match here and then more content and more content "
            "and more content at the end of the string")
    snippet = build_snippet(text, "match", 20)
    assert "match" in snippet
    assert len(snippet) == 80
    assert snippet.endswith("...")
    assert snippet.startswith(text[:77])


def test_build_snippet_long_text_match_late_centered():
    text = "a" * 70 + "match" + "b" * 20
    snippet = build_snippet(text, "match", 70)
    assert "match" in snippet
    assert len(snippet) == 80
    assert snippet.startswith("...")
    assert snippet.endswith("b" * 20)


def test_build_snippet_match_at_start():
    text = "match is here at the start of a very long text that should be truncated when rendered"
    snippet = build_snippet(text, "match", 0)
    assert snippet.startswith("match")
    assert len(snippet) <= 80


def test_build_snippet_match_at_end():
    text = "x" * 50 + "this is a very long text that ends with match"
    snippet = build_snippet(text, "match", len(text) - 5)
    assert "match" in snippet
    assert len(snippet) <= 80


def test_build_snippet_middle_has_both_ellipses():
    text = "x" * 60 + "match" + "y" * 100
    snippet = build_snippet(text, "match", 60)
    assert snippet.startswith("...")
    assert snippet.endswith("...")
    assert "match" in snippet
    assert len(snippet) == 80


def test_search_session_file_not_found_returns_none():
    assert search_session(Session(id="1", path="/nonexistent/file.jsonl"), "test") is None


def test_count_and_snippet_no_match():
    assert count_and_snippet("hello world", "xyz") == (0, "")


def test_count_and_snippet_case_insensitive():
    count, snippet = count_and_snippet("Hello WORLD", "hello")
    assert count == 1
    assert snippet == "Hello WORLD"


def test_count_and_snippet_multiple():
    count, _ = count_and_snippet("test test test", "test")
    assert count == 3


def test_match_user_event_string_content():
    event = {"type": "user", "message": {"content": "hello world"}}
    hits, snippet = match_user_event(event, "hello")
    assert hits == 1
    assert "hello" in snippet


def test_match_user_event_array_content():
    event = {"type": "user", "message": {"content": [
        {"type": "text", "text": "hello"},
        {"type": "text", "text": "world"},
    ]}}
    hits, _ = match_user_event(event, "hello")
    assert hits == 1


def test_match_user_event_tool_result_only():
    event = {"type": "user", "message": {"content": [
        {"type": "tool_result", "content": "hello"},
    ]}}
    assert match_user_event(event, "hello") == (0, "")


@pytest.mark.parametrize("event", [
    {"type": "user"},
    {"type": "user", "message": {}},
    {"type": "user", "message": {"content": 42}},
])
def test_match_user_event_without_text(event):
    assert match_user_event(event, "hello") == (0, "")


def test_match_assistant_event_text_only():
    event = {"type": "assistant", "message": {"content": [
        {"type": "text", "text": "hello there"},
        {"type": "tool_use", "name": "Bash", "input": {}},
    ]}}
    hits, snippet = match_assistant_event(event, "hello")
    assert hits == 1
    assert snippet == "hello there"


def test_match_assistant_event_skips_thinking():
    event = {"type": "assistant", "message": {"content": [
        {"type": "thinking", "thinking": "hello"},
    ]}}
    assert match_assistant_event(event, "hello") == (0, "")


def test_match_assistant_event_string_content_ignored():
    event = {"type": "assistant", "message": {"content": "hello"}}
    assert match_assistant_event(event, "hello") == (0, "")


def test_parse_search_query_no_prefix():
    text, filters = parse_search_query("hello world")
    assert text == "hello world"
    assert filters == SearchFilters()


def test_parse_search_query_project_prefix():
    text, filters = parse_search_query("project:lore refresh token")
    assert text == "refresh token"
    assert filters.project == "lore"


def test_parse_search_query_branch_prefix():
    text, filters = parse_search_query("branch:main foo")
    assert text == "foo"
    assert filters.branch == "main"


def test_parse_search_query_both_prefixes():
    text, filters = parse_search_query("project:lore branch:main query text")
    assert text == "query text"
    assert filters == SearchFilters(project="lore", branch="main")


def test_parse_search_query_prefix_at_end():
    text, filters = parse_search_query("foo project:bar")
    assert filters.project == "bar"
    assert text == "foo"


def test_parse_search_query_only_prefixes():
    text, filters = parse_search_query("project:lore branch:feat/v0.8")
    assert text == ""
    assert filters == SearchFilters(project="lore", branch="feat/v0.8")


def test_parse_search_query_prefix_case_insensitive():
    text, filters = parse_search_query("Project:Lore x")
    assert text == "x"
    assert filters.project == "Lore"


def _fixture(tmp_path, name, project, branch, text):
    line = ('{"type":"user","sessionId":"x","timestamp":"2026-01-01T00:00:00Z",'
            '"cwd":"/%s","gitBranch":"%s","message":{"content":"%s"}}' % (project, branch, text))
    return _write(tmp_path, name, line + "\n")


def test_search_sessions_project_filter(tmp_path):
    pa = _fixture(tmp_path, "a.jsonl", "lore", "main", "index content")
    pb = _fixture(tmp_path, "b.jsonl", "other", "main", "index content")
    sessions = [
        Session(id="a", project="lore", branch="main", path=pa),
        Session(id="b", project="other", branch="main", path=pb),
    ]
    text, filters = parse_search_query("project:lore index")
    results = search_sessions_filtered(sessions, text, filters)
    assert [r.session.id for r in results] == ["a"]


def test_search_sessions_filtered_branch_only():
    sessions = [Session(id="1", branch="main"), Session(id="2", branch="feat/other")]
    results = search_sessions_filtered(sessions, "", SearchFilters(branch="main"))
    assert len(results) == 1
    assert results[0].session.id == "1"
    assert results[0].hit_count == 1


def test_search_sessions_filtered_filter_ignores_case():
    sessions = [Session(id="1", project="Lore"), Session(id="2", project="other")]
    results = search_sessions_filtered(sessions, "", SearchFilters(project="lore"))
    assert [r.session.id for r in results] == ["1"]


def test_search_sessions_filtered_empty_everything():
    sessions = [Session(id="1", branch="main")]
    results = search_sessions_filtered(sessions, "", SearchFilters())
    assert len(results) == 1
    assert results[0].hit_count == 1