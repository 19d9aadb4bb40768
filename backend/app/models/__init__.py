from app.models.dataset_document import DatasetDocument
from app.models.event_metric_snapshot import EventMetricSnapshot

__all__ = [
    "DatasetDocument",
    "EventMetricSnapshot",
]
