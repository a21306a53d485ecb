# Services package init
"""
Inkwell Backend - Services Layer
=================================

What:  Business rules sitting between routes (HTTP) and the database.
How:   Services receive the request's AsyncSession per call, apply the rules,
       and return response schemas or raise app.exceptions. main.py builds
       one instance of each and parks it on app.state.

Service Inventory:
    - PostService:     post create/edit/delete, listings, author post counter
    - UserService:     registration, login, profile, avatar, profile edit
    - FileService:     upload naming, size limits, storage and removal
    - PasswordHasher:  bcrypt hashing (security.py)
    - TokenService:    login token issue/verify (security.py)
"""
