import pytest

from pyroombooking.exceptions import ProviderError
from pyroombooking.provider import loader as loader_module


@pytest.fixture
def folder_scans(monkeypatch: pytest.MonkeyPatch) -> list[int]:
    loader_module.clear_manifest_cache()
    scans: list[int] = []
    original = loader_module.iter_provider_folders

    def counting():
        scans.append(1)
        return original()

    monkeypatch.setattr(loader_module, "iter_provider_folders", counting)
    yield scans
    loader_module.clear_manifest_cache()


def test_manifests_are_read_once(folder_scans: list[int]) -> None:
    first = loader_module.load_manifests()
    loader_module.get_manifest("click")
    loader_module.list_providers()
    assert loader_module.load_manifests() == first
    assert len(folder_scans) == 1


def test_clearing_cache_rescans_folders(folder_scans: list[int]) -> None:
    loader_module.load_manifests()
    loader_module.clear_manifest_cache()
    loader_module.load_manifests()
    assert len(folder_scans) == 2


def test_manifests_are_sorted_by_id() -> None:
    ids = [manifest.id for manifest in loader_module.load_manifests()]
    assert ids == sorted(ids)
    assert {"booking_api", "click"} <= set(ids)


def test_list_providers_reports_payment_methods() -> None:
    providers = {info.id: info for info in loader_module.list_providers()}
    assert providers["click"].payment_methods == ("click",)
    assert providers["click"].name == "Click Merchant API"
    assert "payme" in providers["booking_api"].payment_methods


def test_get_manifest_unknown_provider() -> None:
    with pytest.raises(ProviderError, match="Unknown provider"):
        loader_module.get_manifest("payme")


def test_parse_manifest() -> None:
    data = {"id": "click", "name": "Click", "payment_methods": ["click"]}
    assert loader_module.parse_manifest(data, "click") == loader_module.ProviderManifest(
        id="click",
        name="Click",
        payment_methods=("click",),
    )


def test_parse_manifest_requires_keys() -> None:
    with pytest.raises(ProviderError, match="payment_methods"):
        loader_module.parse_manifest({"id": "click", "name": "Click"}, "click")


def test_parse_manifest_id_must_match_folder() -> None:
    data = {"id": "click", "name": "Click", "payment_methods": ["click"]}
    with pytest.raises(ProviderError):
        loader_module.parse_manifest(data, "payme")


@pytest.mark.parametrize(
    "methods",
    [[], "click", ["click", 1], [""], ["click", "click"]],
)
def test_parse_manifest_rejects_bad_payment_methods(methods) -> None:
    data = {"id": "click", "name": "Click", "payment_methods": methods}
    with pytest.raises(ProviderError):
        loader_module.parse_manifest(data, "click")


def test_parse_manifest_rejects_non_object() -> None:
    with pytest.raises(ProviderError):
        loader_module.parse_manifest(["click"], "click")
