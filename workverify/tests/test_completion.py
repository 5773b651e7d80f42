import httpx
import openai
import pytest

from workverify.completion import CompletionService, build_messages, build_prompt
from workverify.config import Settings
from workverify.errors import ErrorKind, VerificationError, from_exception


def test_prompt_interpolates_instructions():
    prompt = build_prompt("Verify the wall has been repainted")
    assert prompt.startswith("I'm providing a 'before' and 'after' image for work verification.")
    assert "specific instructions: Verify the wall has been repainted\n" in prompt
    assert prompt.endswith("Write a detailed report in bullet points about the relevant changes you notice.")


def test_messages_order_and_detail():
    (message,) = build_messages("x", "data:before", "data:after", detail="low")
    assert [b["type"] for b in message["content"]] == ["text", "image_url", "image_url"]
    assert message["content"][1]["image_url"] == {"url": "data:before", "detail": "low"}
    assert message["content"][2]["image_url"] == {"url": "data:after", "detail": "low"}


def test_client_is_bounded_and_not_retried():
    svc = CompletionService(Settings(openai_api_key="sk-test", openai_timeout_s=7.5))
    assert svc.client.max_retries == 0
    assert svc.client.timeout == 7.5


def test_analyze_uses_configured_model(fake_openai, completions):
    cfg = Settings(openai_model="some-vision-model", openai_max_tokens=42, openai_image_detail="auto")
    svc = CompletionService(cfg, client=fake_openai)
    completions.reply = "done"
    assert svc.analyze("check", "data:a", "data:b") == "done"
    call = completions.calls[0]
    assert call["model"] == "some-vision-model"
    assert call["max_tokens"] == 42
    assert call["messages"][0]["content"][1]["image_url"]["detail"] == "auto"


def test_analyze_rejects_empty_choices(fake_openai, completions):
    completions.reply = None
    svc = CompletionService(Settings(), client=fake_openai)
    with pytest.raises(VerificationError) as info:
        svc.analyze("check", "data:a", "data:b")
    assert info.value.kind is ErrorKind.EXTERNAL_SERVICE
    assert info.value.status_code == 500


def _request():
    return httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


@pytest.mark.parametrize("exc,kind", [
    (openai.APIConnectionError(request=_request()), ErrorKind.TRANSPORT),
    (openai.APITimeoutError(request=_request()), ErrorKind.TRANSPORT),
    (openai.APIStatusError("bad image", response=httpx.Response(400, request=_request()), body=None),
     ErrorKind.EXTERNAL_SERVICE),
    (PermissionError("read-only"), ErrorKind.STORAGE),
    (ValueError("odd"), ErrorKind.EXTERNAL_SERVICE),
])
def test_error_classification(exc, kind):
    err = from_exception(exc)
    assert err.kind is kind
    assert err.message == str(exc)
    assert err.status_code == 500


def test_validation_error_is_client_error():
    err = VerificationError(ErrorKind.VALIDATION, "Missing verification instructions")
    assert err.status_code == 400
    assert from_exception(err) is err
