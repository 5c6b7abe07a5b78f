"""
Domain layer for the clothing store.
Contains business logic, account contexts and inventory managers
separated from data persistence concerns.
"""
