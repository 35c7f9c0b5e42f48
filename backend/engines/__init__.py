from engines.progress import ProgressTracker, ProgressStatus, Overview, next_unread, compute_overview
from engines.navigation import NavigationResolver, Neighbors, neighbors
from engines.journal import ReadingJournalStore
from engines.discussion import DiscussionService, MentorClient, ExternalServiceError
from engines.curriculum import CurriculumEngine

__all__ = [
    "ProgressTracker",
    "ProgressStatus",
    "Overview",
    "next_unread",
    "compute_overview",
    "NavigationResolver",
    "Neighbors",
    "neighbors",
    "ReadingJournalStore",
    "DiscussionService",
    "MentorClient",
    "ExternalServiceError",
    "CurriculumEngine",
]
