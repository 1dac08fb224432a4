"""
High-level use cases for the API.

Each service module orchestrates repositories to implement business rules
(register a user, check credentials). Route handlers call these services
instead of manipulating collection files directly.
"""
