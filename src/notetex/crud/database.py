from sqlmodel import SQLModel, create_engine

# registers the conversion tables on SQLModel.metadata
import notetex.crud.models  # noqa: F401


def make_engine(db_url: str):
    return create_engine(db_url, echo=False)


def init_db(engine) -> None:
    SQLModel.metadata.create_all(engine)


def reset_db(engine) -> None:
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
