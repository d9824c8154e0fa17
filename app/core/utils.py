"""
Utility functions for the application.
"""
from datetime import datetime, timezone
from typing import Type, TypeVar, List, Any
from pydantic import BaseModel

T = TypeVar('T', bound=BaseModel)


def utc_now() -> datetime:
    """Timezone-aware current time; stamped on every record mutation."""
    return datetime.now(timezone.utc)


def iso_timestamp() -> str:
    """ISO-8601 emission timestamp for sync events."""
    return utc_now().isoformat()


async def model_to_schema(
    db_model: Any,
    schema_class: Type[T]
) -> T:
    """
    Convert a SQLAlchemy model instance to a Pydantic schema instance.

    Args:
        db_model: SQLAlchemy model instance
        schema_class: Pydantic schema class

    Returns:
        Instance of the Pydantic schema
    """
    return schema_class.model_validate(
        db_model,
        from_attributes=True
    )

async def models_to_schemas(
    db_models: List[Any],
    schema_class: Type[T]
) -> List[T]:
    """
    Convert a list of SQLAlchemy model instances to a list of Pydantic schema instances.

    Args:
        db_models: List of SQLAlchemy model instances
        schema_class: Pydantic schema class

    Returns:
        List of Pydantic schema instances
    """
    return [await model_to_schema(model, schema_class) for model in db_models]
