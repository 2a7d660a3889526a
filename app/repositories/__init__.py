from app.repositories.base import IImageStore, IRecipeRepository, IUserRepository
from app.repositories.memory import InMemoryImageStore, InMemoryRecipeRepository, InMemoryUserRepository

__all__ = [
    "IUserRepository",
    "IRecipeRepository",
    "IImageStore",
    "InMemoryUserRepository",
    "InMemoryRecipeRepository",
    "InMemoryImageStore",
]
