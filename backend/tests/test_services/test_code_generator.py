"""Tests for magic code value generation."""

import pytest
from sqlalchemy.orm import Session

from models.config import DEFAULT_CODE_ALPHABET
from models.exceptions import DuplicateMagicCodeException
from repositories.magic_code_repository import MagicCodeRepository
from services.code_generator import create_unique_code, generate_code


class TestGenerateCode:
    def test_format(self, code_pattern) -> None:
        pattern = code_pattern()
        for _ in range(200):
            assert pattern.match(generate_code())

    def test_excludes_ambiguous_symbols(self) -> None:
        symbols = {c for _ in range(200) for c in generate_code().replace("-", "")}
        assert "0" not in symbols
        assert "O" not in symbols
        assert symbols <= set(DEFAULT_CODE_ALPHABET)

    def test_custom_alphabet(self, code_pattern) -> None:
        value = generate_code("AB")
        assert code_pattern("AB").match(value)


class TestCreateUniqueCode:
    def test_retries_on_collision(
        self, db_session: Session, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        calls = []

        def value_exists(self, value: str) -> bool:
            calls.append(value)
            return len(calls) < 3

        monkeypatch.setattr(MagicCodeRepository, "value_exists", value_exists)

        value = create_unique_code(MagicCodeRepository(db_session), max_attempts=5)

        assert value == calls[-1]
        assert len(calls) == 3

    def test_raises_after_max_attempts(
        self, db_session: Session, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(
            MagicCodeRepository, "value_exists", lambda self, value: True
        )

        with pytest.raises(DuplicateMagicCodeException):
            create_unique_code(MagicCodeRepository(db_session), max_attempts=4)
