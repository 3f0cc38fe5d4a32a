from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # 操作日志数据库
    database_url: str = "duckdb://./venue_server/data/venue.duckdb"
    
    # 外部预约后端（目录、预约读写）
    backend_base_url: str = "http://localhost:3001/api"
    backend_timeout_seconds: float = 10.0
    backend_api_token: Optional[str] = None
    
    # 定价规则
    tuesday_surcharge: float = 1500.0  # 周二附加费
    
    # 提前预约天数：客户流程7天，管理后台不限制
    customer_lead_days: int = 7
    admin_lead_days: int = 0
    
    # API配置
    api_title: str = "Venue Reservations API"
    api_version: str = "1.0.0"
    api_prefix: str = "/api/v1"
    
    # 开发模式
    debug: bool = False
    
    class Config:
        env_file = ".env"
        case_sensitive = False

# 全局设置实例
settings = Settings()
