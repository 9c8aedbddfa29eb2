"""
Document store - every entity store on top of pymongo.

Documents are the model dump with the id stored as `_id`. Uniqueness rules
are unique indexes (see careerhub.db.mongodb.init_mongo_indexes), and
conditional updates are a single find_one_and_update whose filter carries
the expected field values.
"""

import logging
import re
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Set, Type

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import ConnectionFailure, DuplicateKeyError, ExecutionTimeout

from careerhub.core.errors import ConflictError, RemoteUnavailableError
from careerhub.db.mongodb import get_collection, test_mongo_connection
from careerhub.schemas.schemas import (
    Application, AptitudeTest, College, Course, Question, Student, TestResult,
)
from careerhub.stores.base import (
    ApplicationStore, CollegeStore, CourseStore, QuestionStore, Stores,
    StudentStore, TestResultStore, TestStore,
)

logger = logging.getLogger(__name__)


@contextmanager
def translate_errors(entity: str):
    """Map pymongo failures onto the CareerHub error taxonomy."""
    try:
        yield
    except DuplicateKeyError as e:
        raise ConflictError(f"{entity} already exists", details={"entity": entity}) from e
    except (ConnectionFailure, ExecutionTimeout) as e:
        logger.error(f"MongoDB call failed for {entity}: {e}")
        raise RemoteUnavailableError("MongoDB", str(e)) from e


class MongoRepository:
    """Primary-key operations shared by every document store."""

    collection_name: str = ""
    model: Type = None
    entity: str = ""
    # Derived fields that are never persisted
    exclude: Set[str] = set()

    def __init__(self, db: Database):
        self.collection: Collection = get_collection(db, self.collection_name)

    def _to_doc(self, entity) -> Dict[str, Any]:
        doc = entity.model_dump(exclude=self.exclude or None)
        doc["_id"] = doc.pop("id")
        return doc

    def _from_doc(self, doc: Optional[dict]):
        if doc is None:
            return None
        doc = dict(doc)
        doc["id"] = doc.pop("_id")
        return self.model.model_validate(doc)

    def _find(self, query: dict, sort: Optional[list] = None) -> list:
        with translate_errors(self.entity):
            cursor = self.collection.find(query)
            if sort:
                cursor = cursor.sort(sort)
            return [self._from_doc(doc) for doc in cursor]

    def _find_one(self, query: dict):
        with translate_errors(self.entity):
            return self._from_doc(self.collection.find_one(query))

    def _exists(self, query: dict) -> bool:
        with translate_errors(self.entity):
            return self.collection.find_one(query, {"_id": 1}) is not None

    def get(self, entity_id: str):
        return self._find_one({"_id": entity_id})

    def insert(self, entity):
        with translate_errors(self.entity):
            self.collection.insert_one(self._to_doc(entity))
        return entity

    def update(self, entity_id: str, changes: Dict[str, Any], expected: Optional[Dict[str, Any]] = None):
        query = {"_id": entity_id, **(expected or {})}
        if not changes:
            return self._find_one(query)
        with translate_errors(self.entity):
            doc = self.collection.find_one_and_update(
                query,
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        return self._from_doc(doc)

    def delete(self, entity_id: str) -> bool:
        with translate_errors(self.entity):
            result = self.collection.delete_one({"_id": entity_id})
        return result.deleted_count == 1


# ============================================================
# ENTITY STORES
# ============================================================

class MongoQuestionStore(MongoRepository, QuestionStore):
    collection_name = "questions"
    model = Question
    entity = "Question"

    def list(self, college_id: Optional[str] = None) -> List[Question]:
        query = {"college_id": college_id} if college_id else {}
        return self._find(query, [("created_at", ASCENDING), ("_id", ASCENDING)])

    def find(self, question_id: str, college_id: Optional[str] = None) -> Optional[Question]:
        query = {"_id": question_id}
        if college_id:
            query["college_id"] = college_id
        return self._find_one(query)

    def get_many(self, question_ids: List[str]) -> List[Question]:
        if not question_ids:
            return []
        return self._find({"_id": {"$in": list(question_ids)}})


class MongoTestStore(MongoRepository, TestStore):
    collection_name = "tests"
    model = AptitudeTest
    entity = "AptitudeTest"

    def list(self, college_id: Optional[str] = None, status: Optional[str] = None) -> List[AptitudeTest]:
        query = {}
        if college_id:
            query["college_id"] = college_id
        if status:
            query["status"] = status
        return self._find(query, [("created_at", DESCENDING), ("_id", ASCENDING)])


class MongoTestResultStore(MongoRepository, TestResultStore):
    collection_name = "results"
    model = TestResult
    entity = "TestResult"

    def find_for(self, test_id: str, student_id: str) -> Optional[TestResult]:
        return self._find_one({"test_id": test_id, "student_id": student_id})

    def list_for_test(self, test_id: str) -> List[TestResult]:
        return self._find({"test_id": test_id}, [("date", DESCENDING), ("_id", ASCENDING)])

    def list_for_student(self, student_id: str) -> List[TestResult]:
        return self._find({"student_id": student_id}, [("date", DESCENDING), ("_id", ASCENDING)])


class MongoApplicationStore(MongoRepository, ApplicationStore):
    collection_name = "applications"
    model = Application
    entity = "Application"

    def find_for(self, student_id: str, course_id: str) -> Optional[Application]:
        return self._find_one({"student_id": student_id, "course_id": course_id})

    def list_for_student(self, student_id: str) -> List[Application]:
        return self._find({"student_id": student_id}, [("created_at", DESCENDING), ("_id", ASCENDING)])

    def list_for_college(self, college_id: str, status: Optional[str] = None) -> List[Application]:
        query = {"college_id": college_id}
        if status:
            query["status"] = status
        return self._find(query, [("created_at", DESCENDING), ("_id", ASCENDING)])

    def exists_for_course(self, course_id: str) -> bool:
        return self._exists({"course_id": course_id})

    def exists_for_student(self, student_id: str) -> bool:
        return self._exists({"student_id": student_id})


class MongoCollegeStore(MongoRepository, CollegeStore):
    collection_name = "colleges"
    model = College
    entity = "College"
    exclude = {"courses"}

    def search(
        self,
        term: Optional[str] = None,
        country: Optional[str] = None,
        verified_only: bool = True,
    ) -> List[College]:
        query: Dict[str, Any] = {}
        if verified_only:
            query["is_verified"] = True
        if term:
            pattern = {"$regex": re.escape(term), "$options": "i"}
            query["$or"] = [{"name": pattern}, {"description": pattern}]
        if country:
            query["country"] = {"$regex": f"^{re.escape(country)}$", "$options": "i"}
        return self._find(query, [("name", ASCENDING), ("_id", ASCENDING)])

    def get_by_profile(self, profile_id: str) -> Optional[College]:
        return self._find_one({"profile_id": profile_id})


class MongoCourseStore(MongoRepository, CourseStore):
    collection_name = "courses"
    model = Course
    entity = "Course"

    def list_for_college(self, college_id: str) -> List[Course]:
        return self._find({"college_id": college_id}, [("name", ASCENDING), ("_id", ASCENDING)])


class MongoStudentStore(MongoRepository, StudentStore):
    collection_name = "students"
    model = Student
    entity = "Student"

    def list(self) -> List[Student]:
        return self._find({}, [("name", ASCENDING), ("_id", ASCENDING)])

    def get_by_profile(self, profile_id: str) -> Optional[Student]:
        return self._find_one({"profile_id": profile_id})


def build_mongo_stores(db: Database) -> Stores:
    """Bundle every document store over one database handle."""
    return Stores(
        backend="mongo",
        questions=MongoQuestionStore(db),
        tests=MongoTestStore(db),
        results=MongoTestResultStore(db),
        applications=MongoApplicationStore(db),
        colleges=MongoCollegeStore(db),
        courses=MongoCourseStore(db),
        students=MongoStudentStore(db),
        ping=lambda: test_mongo_connection(db),
    )
