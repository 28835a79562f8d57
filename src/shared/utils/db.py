from sqlalchemy.engine import Engine

from shared.database import Base, get_database


def _register_models() -> None:
    # Importing the model modules registers their tables on Base.metadata.
    import catalogue.product.product  # noqa: F401
    import identity.user  # noqa: F401
    import ordering.cart.cart  # noqa: F401
    import ordering.order.order  # noqa: F401
    import payments.webhook.ledger  # noqa: F401


def setup_db(engine: Engine | None = None) -> None:
    """Setup database schema"""
    _register_models()
    Base.metadata.create_all(engine or get_database().engine)


def drop_db(engine: Engine | None = None) -> None:
    """Drop database schema"""
    _register_models()
    Base.metadata.drop_all(engine or get_database().engine)


def reset_data(engine: Engine | None = None) -> None:
    """Delete every row, leaving the schema in place."""
    engine = engine or get_database().engine
    with engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())
