"""
Tests for S3 resume storage using moto
"""
import boto3
import pytest
from moto import mock_aws

from utils.storage import ResumeStorage, media_type_for, split_s3_url

BUCKET = "test-resumes"


@pytest.fixture
def s3_storage(aws_credentials):
    with mock_aws():
        s3 = boto3.client("s3", region_name="us-east-1")
        s3.create_bucket(Bucket=BUCKET)
        yield ResumeStorage(BUCKET, region_name="us-east-1", s3_client=s3), s3


class TestMediaTypes:
    """Media type resolution"""

    @pytest.mark.parametrize("filename,declared,expected", [
        ("cv.pdf", None, "application/pdf"),
        ("cv.DOCX", None, "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
        ("cv.doc", "application/octet-stream", "application/msword"),
        ("upload", "text/plain; charset=utf-8", "text/plain"),
        ("photo.png", None, "image/png"),
        ("noext", None, None),
    ])
    def test_media_type_for(self, filename, declared, expected):
        assert media_type_for(filename, declared) == expected

    def test_split_s3_url(self):
        assert split_s3_url("s3://other/resumes/a.pdf", BUCKET) == ("other", "resumes/a.pdf")
        assert split_s3_url("resumes/a.pdf", BUCKET) == (BUCKET, "resumes/a.pdf")


class TestResumeStorage:
    """ResumeStorage against a mocked bucket"""

    def test_upload_and_fetch(self, s3_storage):
        storage, s3 = s3_storage
        key = storage.upload(b"%PDF-1.4", "Jane Doe CV.pdf")

        assert key.startswith("resumes/")
        assert key.endswith("_Jane_Doe_CV.pdf")
        head = s3.head_object(Bucket=BUCKET, Key=key)
        assert head["ContentType"] == "application/pdf"

        attachment = storage.fetch(key)
        assert attachment.data == b"%PDF-1.4"
        assert attachment.media_type == "application/pdf"
        assert attachment.is_supported

    def test_fetch_s3_url(self, s3_storage):
        storage, s3 = s3_storage
        s3.put_object(Bucket=BUCKET, Key="legacy/cv.txt", Body=b"resume text")

        attachment = storage.fetch(f"s3://{BUCKET}/legacy/cv.txt")

        assert attachment.data == b"resume text"
        assert attachment.media_type == "text/plain"

    def test_fetch_missing_returns_none(self, s3_storage):
        storage, _ = s3_storage
        assert storage.fetch("resumes/missing.pdf") is None

    def test_presigned_url(self, s3_storage):
        storage, s3 = s3_storage
        s3.put_object(Bucket=BUCKET, Key="resumes/cv.pdf", Body=b"%PDF")

        url = storage.create_presigned_url("resumes/cv.pdf")

        assert url.startswith("https://")
        assert BUCKET in url
        assert "resumes/cv.pdf" in url
