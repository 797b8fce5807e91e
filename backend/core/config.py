"""
系统配置管理
统一管理所有配置项，支持环境变量覆盖
"""

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
from urllib.parse import quote_plus

# 获取backend目录的绝对路径
BACKEND_DIR = Path(__file__).parent.parent.resolve()
ENV_FILE = BACKEND_DIR / ".env"


class Settings(BaseSettings):
    """系统配置"""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # 应用信息
    app_name: str = "Portfolio Blog"
    app_version: str = "1.0.0"
    debug: bool = False
    cors_origins: List[str] = ["*"]  # 生产环境应限制为前端域名

    # 数据库配置
    database_url: Optional[str] = None  # 完整连接串，设置后覆盖下面的 db_* 配置（测试使用 SQLite）
    db_host: str = "localhost"
    db_port: int = 3306
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "portfolio_blog"
    db_time_zone: str = "+00:00"

    @property
    def db_url(self) -> str:
        if self.database_url:
            return self.database_url
        encoded_user = quote_plus(self.db_user)
        encoded_pwd = quote_plus(self.db_password)
        return f"mysql+aiomysql://{encoded_user}:{encoded_pwd}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def db_url_sync(self) -> str:
        if self.database_url:
            return self.database_url.replace("+aiosqlite", "").replace("+aiomysql", "+pymysql")
        encoded_user = quote_plus(self.db_user)
        encoded_pwd = quote_plus(self.db_password)
        return f"mysql+pymysql://{encoded_user}:{encoded_pwd}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def is_mysql(self) -> bool:
        return self.db_url.startswith("mysql")

    # JWT令牌配置
    jwt_secret: str = "your-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24

    # 默认管理员账户配置（首次启动时创建）
    admin_username: str = "admin"
    admin_password: str = "admin123"  # 首次启动后请立即修改
    admin_nickname: str = "站点管理员"

    # 博客评论配置
    comment_max_length: int = 1000
    comment_spam_words: List[str] = ["viagra", "casino", "lottery", "winner", "prize"]

    # 评论通知邮件（Postmark）
    postmark_server_token: Optional[str] = None
    email_from: Optional[str] = None
    comment_notify_to: Optional[str] = None
    site_url: str = "http://localhost:8000"


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """
    获取配置单例
    支持运行时重新加载
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()

        # 安全检查: 如果是生产环境且使用默认密钥，发出警告
        if not _settings_instance.debug and _settings_instance.jwt_secret == "your-secret-key-change-in-production":
            import logging
            logging.getLogger("core.config").warning(
                "🚨 [安全警告] 您正在生产环境模式下使用默认的 JWT_SECRET！"
                "请立即在 .env 文件中配置 JWT_SECRET。"
            )
    return _settings_instance


def reload_settings():
    """
    重新加载配置
    仅重新加载配置，不清理已签发的Token
    """
    global _settings_instance
    _settings_instance = Settings()
    return _settings_instance
