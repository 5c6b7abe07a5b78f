"""
Services Layer
Presentation-specific services, data getters, and helper classes used primarily in routes.

Services should:
- Not modify core data models or business logic
- Be presentation-focused - used primarily by routes
- Be stateless where possible
- Handle presentation-specific concerns (filtering and paging for display)
"""
