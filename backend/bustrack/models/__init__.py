"""
Modèles SQLAlchemy / SQLAlchemy models.
Importer tous les modèles ici pour que create_all les détecte.
Import all models here so create_all can detect them.
"""

from bustrack.models.assignment import Assignment, AssignmentStatus
from bustrack.models.location_fix import LocationFix
from bustrack.models.sos_alert import SosAlert, SosStatus

__all__ = [
    "Assignment",
    "AssignmentStatus",
    "LocationFix",
    "SosAlert",
    "SosStatus",
]
