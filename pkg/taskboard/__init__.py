# Task board: boards, tasks and comments in a local key-value document store
#
# Components:
#   schema.py   - Data model (Board, Task, Comment, User, TaskStatus, TaskPriority)
#   kvstore.py  - Durable key-value slots (SQLite / in-memory)
#   document.py - JSON document load/save with default bootstrap
#   store.py    - Board/task/comment repository
#   reducer.py  - Column view and pure state transitions
#   auth.py     - Single-seat simulated session store
#   events.py   - Persist-then-reduce bridge for the presentation layer
#   config.py   - YAML + environment settings
