from easyread_generator.logging import make_redaction_processor


def test_redaction_masks_user_text_and_credentials():
    processor = make_redaction_processor(secrets=["sk-live-abcdef123456"])
    out = processor(
        None,
        "info",
        {
            "event": "transform_attempt_malformed",
            "text": "my medical history",
            "messages": [{"role": "user", "content": "x"}],
            "detail": "called with sk-live-abcdef123456",
            "authorization": "Bearer abcdefghijkl",
            "attempt": 2,
        },
    )
    assert out["event"] == "transform_attempt_malformed"
    assert out["text"] == "[OMITTED len=18]"
    assert out["messages"] == "[OMITTED len=1]"
    assert out["detail"] == "called with [REDACTED]"
    assert out["authorization"] == "[REDACTED]"
    assert out["attempt"] == 2


def test_redaction_scrubs_bearer_and_openai_keys_in_free_text():
    processor = make_redaction_processor()
    out = processor(None, "warning", {"event": "Bearer abcdefghijkl failed for sk-abcdefghijklmnop"})
    assert out["event"] == "Bearer [REDACTED] failed for [REDACTED]"
