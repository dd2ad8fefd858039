"""Business logic layer for drive app.

This package contains all business logic of the engine:
- Permission resolution and grant management
- Folder and file lifecycle (create, rename, trash, restore, purge)
- Public sharing by token
- Ranked search across folders and files

Every operation takes the caller's user id and checks access through
``permission_operations.authorize`` before touching state.
"""
