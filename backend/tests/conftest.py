"""
Shared fixtures: in-memory MongoDB, mocked R2 bucket, recording mailer
"""

import boto3
import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient
from moto import mock_aws

from cms.config import Settings
from cms.context import Environment
from cms.controllers.registry import build_registry
from cms.main import create_app
from cms.services.r2_storage import R2Storage
from support import ADMIN_EMAIL, ADMIN_KEY, BUCKET, RecordingMailer, run


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        R2_ENABLED=True,
        R2_BUCKET_NAME=BUCKET,
    )


@pytest.fixture
def db():
    return AsyncMongoMockClient()["cms_test"]


@pytest.fixture
def aws_credentials(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def storage(aws_credentials):
    with mock_aws():
        s3 = boto3.client("s3", region_name="us-east-1")
        s3.create_bucket(Bucket=BUCKET)
        yield R2Storage(s3, BUCKET)


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def registry(settings):
    return build_registry(settings)


@pytest.fixture
def environment(db, settings, mailer, storage, registry):
    return Environment(db=db, settings=settings, mailer=mailer, controllers=registry, files=storage)


@pytest.fixture
def app(environment):
    return create_app(environment=environment)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def admin(db):
    """An account that authenticates with its permanent key"""
    run(db.users.insert_one({"email": ADMIN_EMAIL, "key": ADMIN_KEY, "created_at": 0}))
    return {"Authorization": f"Bearer {ADMIN_KEY}"}
