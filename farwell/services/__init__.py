"""
High-level use cases for the Farwell API.

Each service module orchestrates repositories/adapters to implement one
business flow (registration and activation, login, profile changes, the
employee upload cache). Routers call these services instead of touching the
database, storage or cache directly.
"""
