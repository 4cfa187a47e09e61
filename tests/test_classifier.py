"""Tests for admin-vs-public request classification"""

import pytest

from bizbud.auth import RequestClassifier
from bizbud.models.auth import OperationClass, RequestOrigin


@pytest.fixture
def classifier():
    return RequestClassifier()


@pytest.mark.parametrize(
    "referer, expected",
    [
        ("https://acme.vercel.app/admin", RequestOrigin.ADMIN),
        ("https://acme.vercel.app/admin/editor?tab=hero", RequestOrigin.ADMIN),
        ("https://acme.vercel.app/", RequestOrigin.PUBLIC),
        ("https://acme.vercel.app/about", RequestOrigin.PUBLIC),
        (None, RequestOrigin.PUBLIC),
        ("", RequestOrigin.PUBLIC),
    ],
)
def test_classify_by_referer(classifier, referer, expected):
    assert classifier.classify(referer) is expected


def test_admin_in_query_string_is_public(classifier):
    assert classifier.classify("https://acme.vercel.app/?next=/admin") is RequestOrigin.PUBLIC


def test_admin_in_host_is_public(classifier):
    assert classifier.classify("https://admin.example.com/") is RequestOrigin.PUBLIC


def test_action_parameter_forces_admin(classifier):
    assert classifier.classify(None, action="admin") is RequestOrigin.ADMIN
    assert classifier.classify("https://acme.vercel.app/", action="ADMIN") is RequestOrigin.ADMIN
    assert classifier.classify(None, action="preview") is RequestOrigin.PUBLIC


def test_read_operation(classifier):
    assert classifier.read_operation("https://acme.vercel.app/admin") is OperationClass.ADMIN_READ
    assert classifier.read_operation("https://acme.vercel.app/") is OperationClass.PUBLIC_READ


def test_custom_prefix():
    classifier = RequestClassifier(admin_path_prefix="/dashboard")
    assert classifier.classify("https://x.test/dashboard") is RequestOrigin.ADMIN
    assert classifier.classify("https://x.test/admin") is RequestOrigin.PUBLIC
