from api import curriculum, journal, discussion

__all__ = ["curriculum", "journal", "discussion"]
