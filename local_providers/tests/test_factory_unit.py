"""ProviderFactory name resolution and AdapterParams merging."""
from __future__ import annotations

import httpx
import pytest
from pydantic import ValidationError

import local_providers
from local_providers.base.dto import AdapterParams
from local_providers.base.factory import ProviderFactory, UnknownProviderError, create_provider
from local_providers.lmstudio import LMStudioProvider
from local_providers.ollama import OllamaProvider


def test_supported_names_are_canonical_and_ordered():
    assert ProviderFactory.supported() == ("ollama", "lm-studio")  # nosec B101


@pytest.mark.parametrize("alias", ["lm-studio", "LMStudio", "lm_studio", "openai-compatible"])
def test_aliases_resolve_to_lm_studio(alias):
    assert isinstance(ProviderFactory.create(alias), LMStudioProvider)  # nosec B101


def test_create_helpers_build_ollama():
    assert isinstance(create_provider("ollama"), OllamaProvider)  # nosec B101
    assert isinstance(local_providers.create("Ollama"), OllamaProvider)  # nosec B101


def test_unknown_name_and_bad_kwargs_raise():
    with pytest.raises(UnknownProviderError):
        ProviderFactory.create("vllm")
    with pytest.raises(UnknownProviderError):
        ProviderFactory.create("ollama", api_key="nope")


def test_params_merge_and_explicit_kwargs_win():
    transport = httpx.MockTransport(lambda r: httpx.Response(200, json={}))
    params = AdapterParams(base_url="http://gpu:11434", timeout_seconds=30, max_retries=4, extra={"transport": transport})
    provider = ProviderFactory.create("ollama", params=params, max_retries=2)
    assert provider.base_url == "http://gpu:11434" and provider.timeout == 30.0  # nosec B101
    assert provider.max_retries == 2  # nosec B101


def test_adapter_params_validation():
    with pytest.raises(ValidationError):
        AdapterParams(timeout_seconds=0)
    with pytest.raises(ValidationError):
        AdapterParams(max_retries=0)
    assert AdapterParams().to_kwargs() == {}  # nosec B101
