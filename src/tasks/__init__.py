"""Site build tasks live here.

One module per concern (`clean.py`, `bundle.py`, `favicon.py`, ...). Leaf tasks
are functions decorated with `@orchestrator.task(name=...)`; compositions are
built from those handles with `series(...)` / `parallel(...)`. The CLI imports
every module in this package and registers each handle it finds.

Do not implement logic here; keep tasks modular per file and tool calls in
`src/tools/`.
"""
