# assistkit

A toolbox for building assistant-style backends. It bundles the small,
dependable pieces such a service keeps needing, and depends on the
standard library only.

## What is inside

- `assistkit.utils.jsonutil`: JSON encoding, re-indenting, extraction of
  the first object or array from free-form text, stripping of Markdown
  code fences from model replies, and atomic file writes.
- `assistkit.utils.validate`: predicates such as `is_email`, `is_url`,
  `is_ipv4`, `is_ipv6`, `is_chinese` and `is_phone`.
- `assistkit.utils.env`: environment variables, OS type, architecture,
  host name, user name and process id.
- Filesystem tools that stay inside a base directory:
  `assistkit.utils.paths` (path validation, `mkdir`, `copy_file`),
  `assistkit.utils.fsread` (`read`, `read_lines`, `read_chunk`, `write`
  with `WriteMode.OVERWRITE`, `APPEND` and `CREATE`),
  `assistkit.utils.fsinfo` (`list_dir`, `stat_path`, `remove`),
  `assistkit.utils.find`, `assistkit.utils.globbing` (`**` globs),
  `assistkit.utils.grep` (uses ripgrep from `assistkit.utils.ripgrep`
  when `rg` is on the `PATH`, and a built-in walk otherwise) and
  `assistkit.utils.move` (falls back to copying when a rename crosses
  file systems).
- `assistkit.utils.patch`: parsing and applying patches in the
  `*** Begin Patch` / `*** End Patch` format with add, update (anchored
  hunks, optional move) and delete operations.
- `assistkit.utils.shell`: `exec_command`, `exec_shell`, `run_script`
  for sh, bash, python, lua and node, and `run_command`.
- `assistkit.utils.git`: `GitRunner`, `GitRepo` (status, diffs, staging,
  commits, upstream and default-branch detection), with the errors
  `GitError`, `NotGitRepoError`, `NoRemoteError`, `NoUpstreamError` and
  `DetachedHeadError`.
- `assistkit.tracing`: a span `Tracer`, context-based span propagation
  and `TraceMiddleware` for WSGI applications.
- `assistkit.workpool`: a bounded `WorkPool` and a `TimedWorkPool`.
- `assistkit.retry`: `retry_call` with exponential backoff and hooks, and
  `RetryAsyncRunner` for running retried tasks on worker threads.
- `assistkit.dsn`: `build_dsn` for mysql, obmysql, postgresql and sqlite.
- `assistkit.logsetup`: `new_logger` with text or JSON lines, written to
  the console and/or a size-rotated file.
- `assistkit.response`: `ok`, `err` and `errf` response envelopes and
  `status_from_code` mapping of business codes to HTTP statuses.
- `assistkit.wiki_index` and `assistkit.wiki_rerank`: an index over a
  directory of Markdown notes with snippet extraction, and optional
  reranking of hits by a chat model you supply.

## Examples

Cleaning a model reply and pulling out the JSON inside it:

```python
from assistkit.utils.jsonutil import clean_json_response, extract_json_object

reply = '```json\n{"answer": 42}\n```'
clean_json_response(reply)                    # '{"answer": 42}'
extract_json_object('noise {"a": "}"} more')  # '{"a": "}"}'
```

Applying a patch under a directory:

```python
from assistkit.utils.patch import apply_patch

apply_patch(
    "*** Begin Patch\n"
    "*** Add File: notes/todo.md\n"
    "+- write docs\n"
    "*** End Patch\n",
    "workspace",
)
```

Matching paths with `**`:

```python
from assistkit.utils.globbing import match_glob

match_glob("src/**/*.py", "src/a/b/c.py")   # True
```

Building a connection string:

```python
from assistkit.dsn import build_dsn

build_dsn("mysql", {"user": "app", "dbname": "assistant"})
# 'app@tcp(127.0.0.1:3306)/assistant'
```

Retrying a flaky call:

```python
from assistkit.retry import default_config, retry_call

def fetch():
    ...

value = retry_call(fetch, default_config())
```

Mapping response codes to HTTP statuses:

```python
from assistkit.response import ResponseCode, status_from_code

status_from_code(ResponseCode.NOT_FOUND)   # 404
```

Searching a Markdown wiki:

```python
from assistkit.wiki_index import IndexManager, WikiConfig

index = IndexManager(WikiConfig(enabled=True, directory="~/wiki"))
for hit in index.grep_content("deployment", 5):
    print(hit.entry.title, hit.snippet)
```

## Errors

Failures are raised as exceptions. Filesystem helpers raise
`NotFoundError`, `PermissionDeniedError`, `InvalidRangeError`,
`InvalidPatchError` and `InvalidPathError` from `assistkit.utils.errors`;
git helpers raise `GitError` and its subclasses.

## What it does not do

- It is a library only: there is no command-line program and no HTTP
  server. `TraceMiddleware` wraps a WSGI application you provide, and the
  response helpers build bodies and statuses for your own framework to send.
- It does not send desktop notifications or control volume, power or
  screen locking.
- It ships no language-model client; `LLMReranker` calls the `chat`
  method of a client object you pass in.
- It opens no database connections; `build_dsn` only builds the string.