import pytest
from pydantic import ValidationError as SettingsValidationError
from basket_api.basket.checkout import next_wishlist
from basket_api.common.custom_exceptions import DependencyFailure
from basket_api.config.settings import DEFAULT_WISHLIST_IDS, Settings
from tests.fakes import InMemoryRotationStore


def test_wishlist_ids_default():
    assert Settings(_env_file=None).WISHLIST_IDS == DEFAULT_WISHLIST_IDS


@pytest.mark.parametrize("ids", [[], ["", "  "]])
def test_empty_wishlist_ids_rejected(ids):
    with pytest.raises(SettingsValidationError):
        Settings(_env_file=None, WISHLIST_IDS=ids)


def test_wishlist_ids_from_env(monkeypatch):
    monkeypatch.setenv("WISHLIST_IDS", '["AAA", " BBB "]')
    assert Settings(_env_file=None).WISHLIST_IDS == ["AAA", "BBB"]


@pytest.mark.asyncio
async def test_next_wishlist_without_targets(fixed_now):
    with pytest.raises(DependencyFailure):
        await next_wishlist(InMemoryRotationStore(), [], fixed_now)
