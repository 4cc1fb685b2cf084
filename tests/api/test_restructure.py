""" Test cases for folder restructure analysis and merge endpoints """
import asyncio
import uuid
import httpx
from unittest.mock import patch
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from api.organized.models import OrganizedFile, ParaBucket
from api.restructure.models import FolderRestructureResponse, MergeSuggestion
from api.restructure.services import (
    analyze_folder_structure,
    analyze_folders_by_bucket,
    build_folder_analysis,
    infer_folder_purpose,
)
from api.restructure.suggestions import SuggestionServiceError, request_merge_suggestions
from tests.fixtures.test_organized_library import archive_memo, archive_note, make_record


def _suggestions():
    return FolderRestructureResponse(
        merge_suggestions=[
            MergeSuggestion(
                target_folder="memo",
                source_folders=["memo", "note"],
                suggested_name="notes",
                rationale="둘 다 메모 모음입니다",
            )
        ],
        reason="중복된 메모 폴더",
    )


def test_infer_folder_purpose():
    """ Test the one-line folder description """
    assert infer_folder_purpose("docs", [], 3, 1) == "폴더명: docs, 파일 3개, 하위폴더 1개"
    assert (
        infer_folder_purpose("docs", ["api", "spec"], 2, 0)
        == "폴더명: docs, 파일 2개, 하위폴더 0개 | 주요키워드: api, spec"
    )


def test_build_folder_analysis():
    """ Test profiling a folder from its records """
    owner_id = uuid.uuid4()
    records = [
        OrganizedFile(
            owner_id=owner_id, original_relative_path="n/sub", para_bucket="Archive",
            is_directory=True, korean_file_name="하위", keywords=["dir"],
        ),
        OrganizedFile(
            owner_id=owner_id, original_relative_path="n/a.txt", para_bucket="Archive",
            korean_file_name=" ", english_file_name="alpha", keywords=["x", "y", "z"],
        ),
        OrganizedFile(
            owner_id=owner_id, original_relative_path="n/b.txt", para_bucket="Archive",
            korean_file_name="베타", keywords=["y", "w", "v", "u"],
        ),
        OrganizedFile(
            owner_id=owner_id, original_relative_path="n/c.txt", para_bucket="Archive",
        ),
    ]

    analysis = build_folder_analysis("n", records)

    assert analysis.folder_name == "n"
    assert analysis.file_count == 3
    assert analysis.subfolder_count == 1
    assert analysis.sample_file_names == ["alpha", "베타"]
    assert analysis.common_keywords == ["x", "y", "z", "w", "v"]
    assert analysis.folder_purpose == (
        "폴더명: n, 파일 3개, 하위폴더 1개 | 주요키워드: x, y, z, w, v"
    )


def test_analyze_folders_by_bucket_groups_by_folder(session: Session):
    """ Test that folders are grouped by their stored value, in name order """
    owner_id = uuid.uuid4()
    make_record(session, owner_id, **archive_note)
    make_record(session, owner_id, **archive_memo)
    make_record(
        session, owner_id,
        original_relative_path="old/loose.txt",
        para_bucket="Archive",
        para_folder=None,
    )
    make_record(
        session, owner_id,
        original_relative_path="old/project.txt",
        para_bucket="Projects",
        para_folder="elsewhere",
    )

    analyses = analyze_folders_by_bucket(session, owner_id, ParaBucket.ARCHIVE)

    assert [analysis.folder_name for analysis in analyses] == ["memo", "note"]
    assert analyses[1].common_keywords == ["note", "memo"]


def test_analyze_not_enough_folders(client, session: Session):
    """ Test that a bucket with one folder gets no suggestions """
    owner_id = uuid.uuid4()
    make_record(session, owner_id, **archive_memo)

    with patch("api.restructure.services.request_merge_suggestions") as mock_suggest:
        response = client.post(
            "/api/v1/folders/analyze-structure",
            json={"user_id": str(owner_id), "para_bucket": "Archive"},
        )

    assert response.status_code == 200
    assert response.json() == {
        "merge_suggestions": [],
        "reason": "폴더가 충분하지 않아 통합 제안을 할 수 없습니다.",
    }
    mock_suggest.assert_not_called()


def test_analyze_returns_suggestions(client, session: Session):
    """ Test that the suggestion service output is returned unchanged """
    owner_id = uuid.uuid4()
    make_record(session, owner_id, **archive_memo)
    make_record(session, owner_id, **archive_note)

    with patch(
        "api.restructure.services.request_merge_suggestions",
        return_value=_suggestions(),
    ) as mock_suggest:
        response = client.post(
            "/api/v1/folders/analyze-structure",
            json={"user_id": str(owner_id), "para_bucket": "archive"},
        )

    assert response.status_code == 200
    data = response.json()
    assert data["reason"] == "중복된 메모 폴더"
    assert data["merge_suggestions"][0]["source_folders"] == ["memo", "note"]
    assert data["merge_suggestions"][0]["suggested_name"] == "notes"

    profiles, bucket = mock_suggest.call_args.args
    assert bucket == "Archive"
    assert [profile.folder_name for profile in profiles] == ["memo", "note"]


def test_analyze_reports_service_failure(session: Session):
    """ Test that a failing suggestion service becomes a reason message """
    owner_id = uuid.uuid4()
    make_record(session, owner_id, **archive_memo)
    make_record(session, owner_id, **archive_note)

    async def failing_suggest(profiles, bucket):
        raise SuggestionServiceError("OpenAI API returned error: 503")

    result = asyncio.run(
        analyze_folder_structure(session, owner_id, ParaBucket.ARCHIVE, suggest=failing_suggest)
    )

    assert result.merge_suggestions == []
    assert result.reason == "폴더 구조 분석 중 오류가 발생했습니다: OpenAI API returned error: 503"


def test_analyze_rejects_bad_request(client):
    """ Test that a malformed owner or bucket is a client error """
    response = client.post(
        "/api/v1/folders/analyze-structure",
        json={"user_id": "nope", "para_bucket": "Archive"},
    )
    assert response.status_code == 400

    response = client.post(
        "/api/v1/folders/analyze-structure",
        json={"user_id": str(uuid.uuid4()), "para_bucket": "Someday"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Unsupported PARA bucket: Someday"


def test_apply_merge_moves_source_folders(client, session: Session):
    """ Test that exactly the source folder records move to the new folder """
    owner_id = uuid.uuid4()
    first = make_record(
        session, owner_id,
        original_relative_path="old/a.txt", korean_file_name="가",
        para_bucket="Archive", para_folder="old-notes", keywords=["a"],
    )
    make_record(
        session, owner_id,
        original_relative_path="old/b.txt",
        para_bucket="Archive", para_folder="Old-Notes",
    )
    make_record(
        session, owner_id,
        original_relative_path="misc/c.txt",
        para_bucket="Archive", para_folder="misc",
    )
    make_record(
        session, owner_id,
        original_relative_path="keep/d.txt",
        para_bucket="Archive", para_folder="keep",
    )
    make_record(
        session, owner_id,
        original_relative_path="projects/e.txt",
        para_bucket="Projects", para_folder="misc",
    )

    response = client.post(
        "/api/v1/folders/apply-merge",
        params={"user_id": str(owner_id), "para_bucket": "Archive"},
        json={"source_folders": ["old-notes", "misc"], "suggested_name": "Notes"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["moved_count"] == 3
    assert data["suggested_name"] == "notes"
    assert data["para_full_path"] == "archive/notes"
    assert data["message"] == "폴더 재구성이 완료되었습니다. 2개 폴더가 'Notes'로 통합되었습니다."

    records = {
        record.original_relative_path: record
        for record in session.exec(select(OrganizedFile).where(OrganizedFile.owner_id == owner_id)).all()
    }
    for path in ("old/a.txt", "old/b.txt", "misc/c.txt"):
        assert records[path].para_folder == "notes"
        assert records[path].para_full_path == "archive/notes"
    assert records["keep/d.txt"].para_folder == "keep"
    assert records["projects/e.txt"].para_folder == "misc"

    moved = records["old/a.txt"]
    assert moved.id == first.id
    assert moved.korean_file_name == "가"
    assert moved.keywords == ["a"]
    assert moved.para_bucket == "Archive"


def test_apply_merge_rejects_invalid_suggestion(client):
    """ Test that a blank name or no source folders is a client error """
    params = {"user_id": str(uuid.uuid4()), "para_bucket": "Archive"}

    response = client.post(
        "/api/v1/folders/apply-merge",
        params=params,
        json={"source_folders": [], "suggested_name": "notes"},
    )
    assert response.status_code == 400

    response = client.post(
        "/api/v1/folders/apply-merge",
        params=params,
        json={"source_folders": ["memo"], "suggested_name": "  "},
    )
    assert response.status_code == 400


def test_apply_merge_reports_partial_failure(client, session: Session):
    """ Test that a storage failure part-way reports the moved count """
    owner_id = uuid.uuid4()
    make_record(session, owner_id, **archive_memo)
    make_record(session, owner_id, **archive_note)

    with patch(
        "api.restructure.services.upsert_organized_file",
        side_effect=[None, SQLAlchemyError("database is locked")],
    ):
        response = client.post(
            "/api/v1/folders/apply-merge",
            params={"user_id": str(owner_id), "para_bucket": "Archive"},
            json={"source_folders": ["memo", "note"], "suggested_name": "notes"},
        )

    assert response.status_code == 500
    assert response.json()["detail"] == "Folder merge failed after moving 1 records into 'notes'"


def test_analyze_reports_unexpected_output_text(session: Session, openai_settings):
    """ Test that a non-text answer from the model becomes a reason message """
    owner_id = uuid.uuid4()
    make_record(session, owner_id, **archive_memo)
    make_record(session, owner_id, **archive_note)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"output": [{"content": [{"type": "output_text", "text": 5}]}]})

    async def suggest(profiles, bucket):
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await request_merge_suggestions(profiles, bucket, client=client)

    result = asyncio.run(
        analyze_folder_structure(session, owner_id, ParaBucket.ARCHIVE, suggest=suggest)
    )

    assert result.merge_suggestions == []
    assert result.reason == "폴더 구조 분석 중 오류가 발생했습니다: Unexpected output text of type int"


def test_analyze_reports_unexpected_error(client, session: Session):
    """ Test that any suggestion failure is reported instead of raised """
    owner_id = uuid.uuid4()
    make_record(session, owner_id, **archive_memo)
    make_record(session, owner_id, **archive_note)

    with patch(
        "api.restructure.services.request_merge_suggestions",
        side_effect=RuntimeError("boom"),
    ):
        response = client.post(
            "/api/v1/folders/analyze-structure",
            json={"user_id": str(owner_id), "para_bucket": "Archive"},
        )

    assert response.status_code == 200
    assert response.json() == {
        "merge_suggestions": [],
        "reason": "폴더 구조 분석 중 오류가 발생했습니다: boom",
    }


def test_apply_merge_normalizes_source_folders(client, session: Session):
    """ Test that prefixed, repeated and blank sources are merged once each """
    owner_id = uuid.uuid4()
    make_record(
        session, owner_id,
        original_relative_path="old/a.txt",
        para_bucket="Archive", para_folder="old-notes",
    )
    make_record(
        session, owner_id,
        original_relative_path="misc/b.txt",
        para_bucket="Archive", para_folder="misc",
    )

    response = client.post(
        "/api/v1/folders/apply-merge",
        params={"user_id": str(owner_id), "para_bucket": "Archive"},
        json={
            "source_folders": ["Archive/Old-Notes", "old-notes", "  ", "misc"],
            "suggested_name": "notes",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["moved_count"] == 2
    assert data["source_folders"] == ["old-notes", "misc"]
    assert data["message"] == "폴더 재구성이 완료되었습니다. 2개 폴더가 'notes'로 통합되었습니다."

    folders = {
        record.para_folder
        for record in session.exec(select(OrganizedFile).where(OrganizedFile.owner_id == owner_id)).all()
    }
    assert folders == {"notes"}


def test_apply_merge_rejects_blank_sources(client):
    """ Test that only blank source folders is a client error """
    response = client.post(
        "/api/v1/folders/apply-merge",
        params={"user_id": str(uuid.uuid4()), "para_bucket": "Archive"},
        json={"source_folders": [" ", "Archive"], "suggested_name": "notes"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "source_folders must not be empty"
