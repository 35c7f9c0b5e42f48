from models.curriculum import (
    CurriculumPhase, CurriculumText, CurriculumPassage, StudyGuide, CatalogCounter,
)
from models.progress import CurriculumProgress, CurriculumSettings
from models.journal import ReadingJournal, CurriculumDiscussion

__all__ = [
    "CurriculumPhase", "CurriculumText", "CurriculumPassage", "StudyGuide", "CatalogCounter",
    "CurriculumProgress", "CurriculumSettings",
    "ReadingJournal", "CurriculumDiscussion",
]
