"""Controller layer for handling HTTP requests."""
from app.controllers.search_controller import SearchController

__all__ = ["SearchController"]
