# Garante o registro de TODAS as models no mesmo registry
from app.db.base_class import Base  # noqa
from app.models.student import Student  # noqa
