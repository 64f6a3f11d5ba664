"""
Loading typed records from the document store
"""

from typing import List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from models.candidate import Applicant
from models.conversation import DataSnapshot
from models.job_order import Client, JobOrder
from utils.logging_utils import get_logger

logger = get_logger(__name__)

APPLICANTS = "applicants"
JOB_ORDERS = "jobOrders"
CLIENTS = "clients"

M = TypeVar("M", bound=BaseModel)


def load_collection(db, collection: str, model: Type[M]) -> List[M]:
    """
    Load and validate every document in a collection

    Documents that fail validation are logged and skipped.
    """
    records = []
    for document in db.list_documents(collection):
        try:
            records.append(model.model_validate(document))
        except ValidationError as e:
            logger.warning(f"⚠️ Skipping invalid {collection} document {document.get('id')}: {e.error_count()} errors")
    return records


def load_snapshot(db) -> DataSnapshot:
    """Read applicants, job orders and clients into an immutable snapshot"""
    snapshot = DataSnapshot(
        applicants=tuple(load_collection(db, APPLICANTS, Applicant)),
        job_orders=tuple(load_collection(db, JOB_ORDERS, JobOrder)),
        clients=tuple(load_collection(db, CLIENTS, Client)),
    )
    logger.debug(
        f"Loaded snapshot: {len(snapshot.applicants)} applicants, "
        f"{len(snapshot.job_orders)} job orders, {len(snapshot.clients)} clients"
    )
    return snapshot
