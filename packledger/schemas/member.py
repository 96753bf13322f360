from pydantic import BaseModel


class MemberBasic(BaseModel):
    """Краткая информация об участнике"""
    id: int
    member_code: str
    first_name: str
    last_name: str
    full_name: str

    model_config = {"from_attributes": True}
