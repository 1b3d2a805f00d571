from pydantic import BaseModel, Field

class CategoryCreate(BaseModel):
    """创建分类请求模型"""
    name: str = Field(..., min_length=1, max_length=100, description="分类名称")

class CategoryResponse(CategoryCreate):
    """分类响应模型"""
    id: int = Field(..., description="分类ID")

    class Config:
        from_attributes = True
