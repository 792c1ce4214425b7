from __future__ import annotations

import uuid
from typing import Annotated, Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

# Reserved id of the single root folder
ROOT_ID = "root"
ROOT_NAME = "Root"

IdFactory = Callable[[], str]


def new_id() -> str:
    """ Default id factory, collision free for any realistic library size. """
    return uuid.uuid4().hex


class Asset(BaseModel):
    """ An uploaded image. ``data`` is anything the editor can use as an image source,
    usually a ``data:`` URI built at upload time.
    """
    model_config = ConfigDict(frozen=True)

    kind: Literal["asset"] = "asset"
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    data: str = Field(min_length=1)


class Folder(BaseModel):
    """ A folder in the library tree. May contain folders and assets, kept in insertion order.
    ``expanded`` only records whether the folder is open in the browser.
    """
    model_config = ConfigDict(frozen=True)

    kind: Literal["folder"] = "folder"
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    children: tuple[Node, ...] = ()
    expanded: bool = False

    @property
    def is_root(self) -> bool:
        return self.id == ROOT_ID

    def folders(self) -> list[Folder]:
        return [c for c in self.children if isinstance(c, Folder)]

    def assets(self) -> list[Asset]:
        return [c for c in self.children if isinstance(c, Asset)]

    def child(self, node_id: str) -> Node | None:
        """ Direct child with the given id, or None. """
        for c in self.children:
            if c.id == node_id:
                return c
        return None


Node = Annotated[Union[Folder, Asset], Field(discriminator="kind")]

Folder.model_rebuild()


def default_tree() -> Folder:
    """ The empty library: a root folder with nothing in it. """
    return Folder(id=ROOT_ID, name=ROOT_NAME)
