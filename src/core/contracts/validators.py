"""
JSON Schema Contract Validators

Модуль для валидации снапшотов реестра AMM (то, что persistence-слой передаёт
движку и получает обратно) согласно формальным JSON Schema контрактам.
Использует библиотеку jsonschema для проверки соответствия данных схемам.

Схемы (src/core/contracts/schema/):
- coin.json
- price_point.json
- pool.json
- transaction.json
- amm_state.json (coins + pools + transactions)
"""

import json
from pathlib import Path
from typing import Any, Dict

import jsonschema
from jsonschema import Draft202012Validator
from referencing import Registry, Resource


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    Загрузчик JSON Schema файлов.

    Схемы лежат в каталоге schema/ рядом с этим модулем и ссылаются друг на
    друга через $ref по $id (например, "pool.json" → "coin.json").
    """

    def __init__(self, schema_dir: Path | None = None):
        self._schema_dir = schema_dir or Path(__file__).parent / "schema"
        if not self._schema_dir.exists():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")

        # Кэш загруженных схем
        self._schemas: Dict[str, Dict[str, Any]] = {}

    @property
    def schema_dir(self) -> Path:
        return self._schema_dir

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Загрузка JSON Schema файла.

        Args:
            schema_name: Имя схемы без расширения (например, 'pool')

        Returns:
            Загруженная схема как dict

        Raises:
            FileNotFoundError: Если файл схемы не найден
            ValueError: Если схема не проходит meta-validation
        """
        if schema_name in self._schemas:
            return self._schemas[schema_name]

        schema_path = self._schema_dir / f"{schema_name}.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")

        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)

        # Валидируем саму схему (meta-validation)
        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e}")

        self._schemas[schema_name] = schema
        return schema

    def registry(self) -> Registry:
        """Registry всех схем каталога для разрешения $ref."""
        resources = []
        for path in sorted(self._schema_dir.glob("*.json")):
            schema = self.load_schema(path.stem)
            resources.append((schema["$id"], Resource.from_contents(schema)))
        return Registry().with_resources(resources)


# Глобальный экземпляр загрузчика
_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """
    Базовый класс для валидаторов контрактов.

    Инкапсулирует логику валидации данных против JSON Schema.
    """

    def __init__(self, schema_name: str):
        """
        Инициализация валидатора.

        Args:
            schema_name: Имя схемы для валидации
        """
        self.schema_name = schema_name
        self.schema = _SCHEMA_LOADER.load_schema(schema_name)
        self.validator = Draft202012Validator(self.schema, registry=_SCHEMA_LOADER.registry())

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Валидация данных против схемы.

        Raises:
            ValidationError: Если данные не соответствуют схеме
        """
        self.validator.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        """Проверка валидности данных без exception."""
        return self.validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]):
        """
        Итератор по всем ошибкам валидации.

        Yields:
            ValidationError объекты для каждой найденной ошибки
        """
        return self.validator.iter_errors(data)


class CoinValidator(ContractValidator):
    """Валидатор для coin контракта."""

    def __init__(self):
        super().__init__("coin")


class PoolValidator(ContractValidator):
    """Валидатор для pool контракта."""

    def __init__(self):
        super().__init__("pool")


class TransactionValidator(ContractValidator):
    """Валидатор для transaction контракта."""

    def __init__(self):
        super().__init__("transaction")


class AMMStateValidator(ContractValidator):
    """Валидатор для снапшота реестра (coins + pools + transactions)."""

    def __init__(self):
        super().__init__("amm_state")


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_coin(data: Dict[str, Any]) -> None:
    """
    Валидация coin данных.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    CoinValidator().validate(data)


def validate_pool(data: Dict[str, Any]) -> None:
    """
    Валидация pool данных.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    PoolValidator().validate(data)


def validate_transaction(data: Dict[str, Any]) -> None:
    """
    Валидация transaction данных.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    TransactionValidator().validate(data)


def validate_amm_state(data: Dict[str, Any]) -> None:
    """
    Валидация снапшота реестра.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    AMMStateValidator().validate(data)
