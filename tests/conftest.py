import pytest

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def auth_client(api_client):
    """APIClient with a force-authenticated Django user."""
    user = get_user_model().objects.create_user(
        username="order-clerk", password="testpass123"
    )
    api_client.force_authenticate(user=user)
    return api_client
