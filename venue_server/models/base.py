"""
基础数据模型
定义通用的模型基类和常用字段
"""

from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, BeforeValidator

from ..utils.values import to_decimal


class BaseEntity(BaseModel):
    """基础实体模型"""

    model_config = {"from_attributes": True, "populate_by_name": True}


class CatalogEntity(BaseEntity):
    """目录实体：只读，未知字段忽略"""

    model_config = {
        "from_attributes": True,
        "populate_by_name": True,
        "frozen": True,
        "extra": "ignore",
    }


# 价格字段的宽松解析：非法值（"abc"、NaN、布尔值）当作缺失
LenientPrice = Annotated[Optional[Decimal], BeforeValidator(to_decimal)]
