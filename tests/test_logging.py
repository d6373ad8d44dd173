import logging

from bulletin_review.core.logging import RedactingFilter


def _logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.filters = []
    logger.addFilter(RedactingFilter())
    return logger


def test_filter_redacts_email_and_phone(caplog):
    logger = _logger("test.contact")

    with caplog.at_level(logging.INFO, logger="test.contact"):
        logger.info("Owner parent@example.org phone +243 81 234 5678")

    assert "parent@example.org" not in caplog.text
    assert "+243 81 234 5678" not in caplog.text
    assert "[REDACTED]" in caplog.text


def test_filter_redacts_student_name_assignment(caplog):
    logger = _logger("test.student")

    with caplog.at_level(logging.INFO, logger="test.student"):
        logger.info("parsed studentName='Amani Kabila' class=6e")

    assert "Amani" not in caplog.text
    assert "studentName='[REDACTED]'" not in caplog.text
    assert "studentName=[REDACTED]" in caplog.text
    assert "class=6e" in caplog.text


def test_filter_redacts_args(caplog):
    logger = _logger("test.args")

    with caplog.at_level(logging.INFO, logger="test.args"):
        logger.info("owner=%s id=%s", "someone@school.cd", 42)

    assert "someone@school.cd" not in caplog.text
    assert "id=42" in caplog.text


def test_document_ids_survive(caplog):
    logger = _logger("test.ids")

    with caplog.at_level(logging.INFO, logger="test.ids"):
        logger.info("Document claimed: id=%s", "3f2b8c1e-9a4d-4e61-8b1f-2c7d5e9a0b13")

    assert "3f2b8c1e-9a4d-4e61-8b1f-2c7d5e9a0b13" in caplog.text
