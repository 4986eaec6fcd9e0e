"""Unit tests for the video repository."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from videosync.api.errors import StoreFailureError
from videosync.storage.models import Base, CorrelationKey, MuxStatus, VideoVisibility
from videosync.storage.repositories import VideoRepository


@pytest.fixture
def db_session():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def video_repo(db_session):
    return VideoRepository(db_session)


def test_create_video(video_repo):
    video = video_repo.create("upload-1", title="Cats", user_id="user-1")

    assert video.id is not None
    assert video.mux_upload_id == "upload-1"
    assert video.title == "Cats"
    assert video.visibility == VideoVisibility.PRIVATE.value
    assert video.mux_status == MuxStatus.CREATED.value
    assert video.duration == 0
    assert video.mux_playback_id is None
    assert video.thumbnail_url is None


def test_get_video(video_repo):
    created = video_repo.create("upload-1")

    found = video_repo.get(created.id)

    assert found is not None
    assert found.id == created.id
    assert video_repo.get_by_upload_id("upload-1").id == created.id
    assert video_repo.get_by_upload_id("missing") is None


def test_list_videos(video_repo):
    for i in range(3):
        video_repo.create(f"upload-{i}")

    assert len(video_repo.list(limit=2)) == 2
    assert len(video_repo.list()) == 3


def test_to_dict_serializes_all_fields(video_repo):
    data = video_repo.create("upload-1").to_dict()

    assert data["mux_upload_id"] == "upload-1"
    assert data["mux_status"] == "created"
    assert data["duration"] == 0
    assert isinstance(data["id"], str)
    assert data["created_at"] is not None


@pytest.mark.anyio
async def test_sync_and_async_apis_reject_the_wrong_session(video_repo, async_session_factory):
    with pytest.raises(TypeError):
        await video_repo.create_async("upload-1")

    async with async_session_factory() as session:
        with pytest.raises(TypeError):
            VideoRepository(session).create("upload-1")


async def _seed(factory, upload_id: str, **fields):
    async with factory() as session:
        video = await VideoRepository(session).create_async(upload_id)
        for name, value in fields.items():
            setattr(video, name, value)
        await session.commit()
        return video.id


async def _read(factory, upload_id: str):
    async with factory() as session:
        return await VideoRepository(session).get_by_upload_id_async(upload_id)


@pytest.mark.anyio
async def test_update_where_targets_one_record(async_session_factory):
    await _seed(async_session_factory, "upload-1")
    await _seed(async_session_factory, "upload-2")

    async with async_session_factory() as session:
        rows = await VideoRepository(session).update_where_async(
            CorrelationKey.UPLOAD_ID, "upload-1", mux_status="preparing", mux_asset_id="asset-1"
        )
        await session.commit()

    assert rows == 1
    first = await _read(async_session_factory, "upload-1")
    second = await _read(async_session_factory, "upload-2")
    assert (first.mux_status, first.mux_asset_id) == ("preparing", "asset-1")
    assert (second.mux_status, second.mux_asset_id) == ("created", None)


@pytest.mark.anyio
async def test_update_where_zero_rows_when_no_match(async_session_factory):
    async with async_session_factory() as session:
        rows = await VideoRepository(session).update_where_async(
            CorrelationKey.ASSET_ID, "missing", mux_track_id="t"
        )
    assert rows == 0


@pytest.mark.anyio
async def test_update_where_unless_status_leaves_matching_record(async_session_factory):
    await _seed(async_session_factory, "upload-1", mux_status="ready")

    async with async_session_factory() as session:
        rows = await VideoRepository(session).update_where_async(
            CorrelationKey.UPLOAD_ID, "upload-1", unless_status="ready", mux_status="preparing"
        )
        await session.commit()

    assert rows == 0
    assert (await _read(async_session_factory, "upload-1")).mux_status == "ready"


@pytest.mark.anyio
async def test_update_where_refuses_broad_or_unknown_updates(async_session_factory):
    async with async_session_factory() as session:
        repo = VideoRepository(session)
        with pytest.raises(ValueError):
            await repo.update_where_async(CorrelationKey.UPLOAD_ID, "", mux_status="ready")
        with pytest.raises(ValueError, match="title"):
            await repo.update_where_async(CorrelationKey.UPLOAD_ID, "u", title="hijack")
        with pytest.raises(ValueError):
            await repo.delete_where_async(CorrelationKey.UPLOAD_ID, "")


@pytest.mark.anyio
async def test_delete_where_is_noop_when_already_deleted(async_session_factory):
    await _seed(async_session_factory, "upload-1")

    for expected in (1, 0):
        async with async_session_factory() as session:
            rows = await VideoRepository(session).delete_where_async(
                CorrelationKey.UPLOAD_ID, "upload-1"
            )
            await session.commit()
        assert rows == expected

    assert await _read(async_session_factory, "upload-1") is None


@pytest.mark.anyio
async def test_store_errors_surface_as_store_failure(async_session_factory, monkeypatch):
    async with async_session_factory() as session:
        async def boom(*_a, **_k):
            raise OperationalError("UPDATE videos", {}, Exception("database is locked"))

        monkeypatch.setattr(session, "execute", boom)
        repo = VideoRepository(session)
        with pytest.raises(StoreFailureError):
            await repo.update_where_async(CorrelationKey.UPLOAD_ID, "u", mux_status="ready")
        with pytest.raises(StoreFailureError):
            await repo.delete_where_async(CorrelationKey.UPLOAD_ID, "u")


@pytest.mark.anyio
async def test_list_and_lookup_async(async_session_factory):
    await _seed(async_session_factory, "upload-1", mux_asset_id="asset-1")

    async with async_session_factory() as session:
        repo = VideoRepository(session)
        assert [v.mux_upload_id for v in await repo.list_async()] == ["upload-1"]
        found = await repo.get_by_upload_id_async("upload-1")
        assert found is not None
        assert (await repo.get_async(found.id)).mux_upload_id == "upload-1"
