"""
Configuration management for the Recruiting ATS Assistant
"""

import os
from datetime import date
from typing import Optional
from dotenv import load_dotenv

from utils.logging_utils import get_logger

# Load environment variables from .env file
load_dotenv()

logger = get_logger(__name__)

# Matches below this score are never shown; configuration may only raise it
MIN_MATCH_SCORE_THRESHOLD = 65


class Config:
    """Configuration management for the Recruiting ATS Assistant"""

    def __init__(self):
        # AWS Configuration
        self.aws_region = self._get_env_var("AWS_REGION", "us-east-1")

        # AWS Bedrock Configuration
        self.bedrock_model_id = self._get_env_var(
            "BEDROCK_MODEL_ID",
            "anthropic.claude-3-haiku-20240307-v1:0"  # Reads PDF/DOCX natively via Converse
        )
        self.bedrock_read_timeout = float(self._get_env_var("BEDROCK_READ_TIMEOUT_SECONDS", "60"))
        self.bedrock_connect_timeout = float(self._get_env_var("BEDROCK_CONNECT_TIMEOUT_SECONDS", "10"))

        # Retry policy for the extraction contract
        self.llm_max_attempts = int(self._get_env_var("LLM_MAX_ATTEMPTS", "3"))
        self.llm_retry_base_delay = float(self._get_env_var("LLM_RETRY_BASE_DELAY_SECONDS", "1.0"))
        self.llm_retry_max_delay = float(self._get_env_var("LLM_RETRY_MAX_DELAY_SECONDS", "8.0"))

        # AWS S3 Configuration
        self.s3_bucket_name = self._get_env_var("S3_BUCKET_NAME")
        self.s3_resume_prefix = self._get_env_var("S3_RESUME_PREFIX", "resumes/")
        self.resume_url_expiry = int(self._get_env_var("RESUME_URL_EXPIRY_SECONDS", "3600"))

        # AWS SES Configuration
        self.ses_region = self._get_env_var("SES_REGION", self.aws_region)
        self.ses_from_email = self._get_env_var("SES_FROM_EMAIL")
        self.app_url = self._get_env_var("APP_URL", "http://localhost:8501")

        # Database Configuration
        self.database_url = self._get_env_var("DATABASE_URL")  # PostgreSQL connection string
        self.supabase_database_url = self._get_env_var("SUPABASE_DATABASE_URL")  # Alternative: Supabase URL

        # Use Supabase URL if available, otherwise use DATABASE_URL
        self.db_connection_string = self.supabase_database_url or self.database_url

        # Matching Configuration
        threshold = int(self._get_env_var("MATCH_SCORE_THRESHOLD", str(MIN_MATCH_SCORE_THRESHOLD)))
        if threshold < MIN_MATCH_SCORE_THRESHOLD:
            logger.warning(f"⚠️ MATCH_SCORE_THRESHOLD={threshold} is below the minimum, using {MIN_MATCH_SCORE_THRESHOLD}")
        self.match_score_threshold = min(max(threshold, MIN_MATCH_SCORE_THRESHOLD), 100)
        self.agency_name = self._get_env_var("AGENCY_NAME", "Emplori Recruiting Services")
        self.jurisdiction = self._get_env_var("JURISDICTION", "Canada")

        # Assistant Configuration
        self.chat_history_limit = int(self._get_env_var("CHAT_HISTORY_LIMIT", "10"))
        self.chat_resume_limit = int(self._get_env_var("CHAT_RESUME_LIMIT", "5"))

        # Bulk rating throttle (token bucket, strictly sequential)
        self.rating_requests_per_minute = float(self._get_env_var("RATING_REQUESTS_PER_MINUTE", "120"))

        # Signed-in user (identity is provided by the hosting platform)
        self.app_user_email = self._get_env_var("APP_USER_EMAIL")

        # Optional fixed "today" for experience calculations (YYYY-MM-DD)
        evaluation_date = self._get_env_var("EVALUATION_DATE")
        self.evaluation_date = date.fromisoformat(evaluation_date) if evaluation_date else None

        # Validate required configuration
        self._validate_config()

    def _get_env_var(self, var_name: str, default: Optional[str] = None) -> Optional[str]:
        """Get environment variable with optional default"""
        value = os.getenv(var_name, default)
        return value.strip() or None if value else None

    def _validate_config(self):
        """Log any required configuration that is missing"""
        required_vars = {
            "S3_BUCKET_NAME": self.s3_bucket_name,
            "DATABASE_URL or SUPABASE_DATABASE_URL": self.db_connection_string,
        }

        missing_vars = [var for var, value in required_vars.items() if not value]

        if missing_vars:
            logger.warning(f"⚠️ Missing required environment variables: {', '.join(missing_vars)}")
        else:
            logger.info("✅ All required environment variables are set")

    @property
    def is_configured(self) -> bool:
        """Check if all required configuration is present"""
        return all([
            self.s3_bucket_name,
            self.db_connection_string,
        ])

    def get_config_status(self) -> dict:
        """Get configuration status for debugging"""
        return {
            "aws_region": self.aws_region,
            "bedrock_model_id": self.bedrock_model_id,
            "s3_bucket_name": self.s3_bucket_name,
            "email_configured": bool(self.ses_from_email),
            "database_configured": bool(self.db_connection_string),
            "fully_configured": self.is_configured
        }
