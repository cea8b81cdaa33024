"""Staff reference as the scheduling core sees it: an opaque id plus display data."""


class StaffRef:
    """One staff member of a tenant. Identity is owned by the auth collaborator."""

    __slots__ = ("user_id", "display_name")

    def __init__(self, *, user_id: str, display_name: str):
        self.user_id = user_id
        self.display_name = display_name

    def __repr__(self) -> str:
        return f"StaffRef({self.user_id!r}, {self.display_name!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, StaffRef) and (self.user_id, self.display_name) == (other.user_id, other.display_name)

    def __hash__(self) -> int:
        return hash((self.user_id, self.display_name))

    def to_row(self) -> dict[str, str]:
        return {"user_id": self.user_id, "display_name": self.display_name}
