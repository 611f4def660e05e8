from .slug import UNSCOPED, Slug, stored_scope

__all__ = ["UNSCOPED", "Slug", "stored_scope"]
