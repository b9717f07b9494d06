import os

# Must be set before app.core.config is imported
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-portal")
os.environ.setdefault("POLL_INTERVAL_SECONDS", "30")

from datetime import timedelta

import pytest

from app.workflow.records import FileUpload
from app.workflow.session import SessionContext, utcnow
from app.workflow.status import Role
from app.workflow.store import InMemoryRecordStore
from app.services.document_service import DocumentService

STUDENT_ID = "stu-1"
OTHER_STUDENT_ID = "stu-2"
ADMIN_ID = "adm-1"

PDF_BYTES = b"%PDF-1.4\n" + b"0" * 256
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"0" * 64
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"0" * 64


class FakeAudit:
    """Collects audit entries instead of writing them to MongoDB."""

    def __init__(self):
        self.entries = []

    async def record(self, action, actor, acted=None, status="successful", detail=None):
        self.entries.append({"action": action, "actor": actor, "acted": acted, "status": status, "detail": detail})


@pytest.fixture
def student_session():
    return SessionContext(user_id=STUDENT_ID, role=Role.student, token="student-token",
                          expires_at=utcnow() + timedelta(hours=1), username="MAT/001")


@pytest.fixture
def other_student_session():
    return SessionContext(user_id=OTHER_STUDENT_ID, role=Role.student, token="other-token",
                          expires_at=utcnow() + timedelta(hours=1), username="MAT/002")


@pytest.fixture
def admin_session():
    return SessionContext(user_id=ADMIN_ID, role=Role.admin, token="admin-token",
                          expires_at=utcnow() + timedelta(hours=1), username="registrar")


@pytest.fixture
def expired_session():
    return SessionContext(user_id=STUDENT_ID, role=Role.student, token="old-token",
                          expires_at=utcnow() - timedelta(minutes=1))


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def audit():
    return FakeAudit()


@pytest.fixture
def document_service(store, audit):
    return DocumentService(store, audit=audit)


@pytest.fixture
def pdf_upload():
    return FileUpload(filename="letter.pdf", content_type="application/pdf", content=PDF_BYTES)


class FakeBucket:
    def __init__(self, storage):
        self.storage = storage

    def upload(self, path, content, options):
        if self.storage.fail_uploads:
            raise RuntimeError("bucket offline")
        self.storage.objects[path] = (content, options["content-type"])

    def remove(self, paths):
        for path in paths:
            self.storage.objects.pop(path, None)

    def create_signed_url(self, path, expires_in, options=None):
        return {"signedURL": f"https://project.supabase.co/storage/v1/object/sign/student-documents/{path}?token=abc"}


class FakeStorageApi:
    def __init__(self):
        self.objects = {}
        self.buckets = []
        self.fail_uploads = False

    def create_bucket(self, name, options=None):
        if name in self.buckets:
            raise RuntimeError("The resource already exists")
        self.buckets.append(name)

    def from_(self, bucket):
        return FakeBucket(self)


class FakeSupabase:
    def __init__(self):
        self.storage = FakeStorageApi()


@pytest.fixture
def supabase():
    return FakeSupabase()
