import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

_SUPABASE_URL = os.getenv('SUPABASE_URL')
# Service-role key; SUPABASE_KEY is accepted for older deployments
_SUPABASE_KEY = os.getenv('SUPABASE_SERVICE_ROLE_KEY') or os.getenv('SUPABASE_KEY')

_OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
_OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')
_OPENAI_RESCUE_MODEL = os.getenv('OPENAI_RESCUE_MODEL', 'gpt-4o')

_BASE_URL = os.getenv('BASE_URL', 'http://localhost:8000').rstrip('/')


class Config:
    """Central configuration for the ReMember Me service."""

    ENVIRONMENT = os.getenv('ENVIRONMENT', 'production').lower()

    SUPABASE_URL = _SUPABASE_URL
    SUPABASE_KEY = _SUPABASE_KEY

    OPENAI_API_KEY = _OPENAI_API_KEY
    OPENAI_MODEL = _OPENAI_MODEL
    OPENAI_RESCUE_MODEL = _OPENAI_RESCUE_MODEL

    # base64 of 32 random bytes (openssl rand -base64 32)
    ENCRYPTION_KEY = os.getenv('ENCRYPTION_KEY')
    # signs OAuth state; ENCRYPTION_KEY is used when unset
    OAUTH_STATE_SECRET = os.getenv('OAUTH_STATE_SECRET')

    GOOGLE_CLIENT_ID = os.getenv('GOOGLE_CLIENT_ID')
    GOOGLE_CLIENT_SECRET = os.getenv('GOOGLE_CLIENT_SECRET')
    MICROSOFT_CLIENT_ID = os.getenv('MICROSOFT_CLIENT_ID')
    MICROSOFT_CLIENT_SECRET = os.getenv('MICROSOFT_CLIENT_SECRET')

    BASE_URL = _BASE_URL
    FRONTEND_URL = os.getenv('FRONTEND_URL', _BASE_URL).rstrip('/')

    CRON_SECRET = os.getenv('CRON_SECRET')
    RESCUE_AI_DELAY_SECONDS = float(os.getenv('RESCUE_AI_DELAY_SECONDS', '1.0'))

    AI_RATE_LIMIT = int(os.getenv('AI_RATE_LIMIT', '20'))
    AI_RATE_WINDOW_SECONDS = int(os.getenv('AI_RATE_WINDOW_SECONDS', '60'))

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == 'production'


settings = Config()
