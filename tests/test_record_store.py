from datetime import datetime

import pytest
import pytest_asyncio
from beanie import PydanticObjectId, init_beanie
from bson import ObjectId
from mongomock_motor import AsyncMongoMockClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.database.models import StudentDocument
from app.services.file_storage import SupabaseFileStorage
from app.services.record_store import BeanieRecordStore
from app.workflow.errors import NotFound, ServerUnavailable
from app.workflow.records import FileUpload
from app.workflow.status import DocumentStatus

from tests.conftest import OTHER_STUDENT_ID, PDF_BYTES, STUDENT_ID


@pytest_asyncio.fixture
async def mongo_store(supabase):
    client = AsyncMongoMockClient()
    await init_beanie(database=client["portal_test"], document_models=[StudentDocument])
    return BeanieRecordStore(SupabaseFileStorage(client=supabase, bucket="student-documents"))


def _upload(name="letter.pdf"):
    return FileUpload(filename=name, content_type="application/pdf", content=PDF_BYTES)


async def _count(student_id=STUDENT_ID):
    return await StudentDocument.find(StudentDocument.student_id == student_id).count()


@pytest.mark.asyncio
async def test_first_upload_creates_record_and_file(mongo_store, supabase):
    record = await mongo_store.upsert_upload(STUDENT_ID, "medical-form", _upload())

    assert record.id
    assert record.status == DocumentStatus.uploaded
    assert record.file_name == "letter.pdf"
    assert record.file_url in supabase.storage.objects
    assert await _count() == 1


@pytest.mark.asyncio
async def test_reupload_resets_review_and_replaces_file(mongo_store, supabase):
    first = await mongo_store.upsert_upload(STUDENT_ID, "medical-form", _upload())
    rejected = await mongo_store.update_status(
        first.id, DocumentStatus.rejected, remarks="blurry", reviewed_by="registrar", reviewed_at=datetime.utcnow()
    )
    assert rejected.remarks == "blurry"

    second = await mongo_store.upsert_upload(STUDENT_ID, "medical-form", _upload("letter-v2.pdf"))

    assert second.id == first.id
    assert second.status == DocumentStatus.uploaded
    assert second.remarks is None
    assert second.reviewed_by is None
    assert second.reviewed_at is None
    assert second.file_name == "letter-v2.pdf"
    assert list(supabase.storage.objects) == [second.file_url]
    assert await _count() == 1


@pytest.mark.asyncio
async def test_concurrent_first_upload_falls_back_to_update(mongo_store, supabase, monkeypatch):
    existing = StudentDocument(
        student_id=STUDENT_ID,
        document_type="medical-form",
        status=DocumentStatus.rejected,
        file_path=f"{STUDENT_ID}/medical-form_old.pdf",
        remarks="blurry",
        reviewed_by="registrar",
    )
    await existing.insert()
    supabase.storage.objects[existing.file_path] = (b"old", "application/pdf")

    real_find = mongo_store._find
    lookups = []

    async def find_missing_once(student_id, document_type):
        lookups.append(document_type)
        if len(lookups) == 1:
            return None
        return await real_find(student_id, document_type)

    async def duplicate_insert(self, *args, **kwargs):
        raise DuplicateKeyError("E11000 duplicate key error")

    monkeypatch.setattr(mongo_store, "_find", find_missing_once)
    monkeypatch.setattr(StudentDocument, "insert", duplicate_insert)

    record = await mongo_store.upsert_upload(STUDENT_ID, "medical-form", _upload())

    assert record.id == str(existing.id)
    assert record.status == DocumentStatus.uploaded
    assert record.remarks is None
    assert existing.file_path not in supabase.storage.objects
    assert list(supabase.storage.objects) == [record.file_url]
    assert await _count() == 1


@pytest.mark.asyncio
async def test_failed_write_removes_new_file(mongo_store, supabase, monkeypatch):
    async def broken_insert(self, *args, **kwargs):
        raise PyMongoError("connection reset")

    monkeypatch.setattr(StudentDocument, "insert", broken_insert)

    with pytest.raises(ServerUnavailable) as exc_info:
        await mongo_store.upsert_upload(STUDENT_ID, "medical-form", _upload())
    assert exc_info.value.retry_hint == "wait"
    assert supabase.storage.objects == {}


@pytest.mark.asyncio
async def test_review_does_not_restore_replaced_file(mongo_store, supabase, monkeypatch):
    first = await mongo_store.upsert_upload(STUDENT_ID, "medical-form", _upload())
    stale = await StudentDocument.get(PydanticObjectId(first.id))
    second = await mongo_store.upsert_upload(STUDENT_ID, "medical-form", _upload("letter-v2.pdf"))

    real_get = mongo_store._get
    loads = []

    async def stale_then_fresh(record_id):
        loads.append(record_id)
        if len(loads) == 1:
            return stale
        return await real_get(record_id)

    monkeypatch.setattr(mongo_store, "_get", stale_then_fresh)

    approved = await mongo_store.update_status(
        first.id, DocumentStatus.approved, reviewed_by="registrar", reviewed_at=datetime.utcnow()
    )

    assert approved.status == DocumentStatus.approved
    assert approved.file_url == second.file_url
    stored = await StudentDocument.get(PydanticObjectId(first.id))
    assert stored.file_path == second.file_url
    assert stored.file_path in supabase.storage.objects


@pytest.mark.asyncio
async def test_delete_student_records_cascades_to_files(mongo_store, supabase):
    await mongo_store.upsert_upload(STUDENT_ID, "medical-form", _upload())
    await mongo_store.upsert_upload(STUDENT_ID, "course-form", _upload())
    kept = await mongo_store.upsert_upload(OTHER_STUDENT_ID, "course-form", _upload())

    assert await mongo_store.delete_student_records(STUDENT_ID) == 2
    assert await mongo_store.fetch_records(STUDENT_ID) == []
    assert list(supabase.storage.objects) == [kept.file_url]
    assert await _count(OTHER_STUDENT_ID) == 1


@pytest.mark.asyncio
async def test_get_record_not_found(mongo_store):
    with pytest.raises(NotFound):
        await mongo_store.get_record("not-an-object-id")
    with pytest.raises(NotFound):
        await mongo_store.get_record(str(ObjectId()))


@pytest.mark.asyncio
async def test_fetch_failure_is_server_unavailable(mongo_store, monkeypatch):
    def broken_find(*args, **kwargs):
        raise PyMongoError("no primary available")

    monkeypatch.setattr(StudentDocument, "find", broken_find)

    with pytest.raises(ServerUnavailable):
        await mongo_store.fetch_records(STUDENT_ID)
