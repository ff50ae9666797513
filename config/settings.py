import copy
import json
from typing import Dict, Any, Optional, List
from cryptography.fernet import Fernet, InvalidToken
from pathlib import Path

# Channel keys used by the Config Store. Values under "sources" are the
# provider identifiers the user has linked to each channel.
CHANNEL_SOURCE_KEYS = ('liked', 'curated', 'secondary', 'artist_station')

DEFAULT_CONFIG: Dict[str, Any] = {
    "spotify": {
        "client_id": "",
        "client_secret": "",
        "redirect_uri": "http://localhost:8888/callback"
    },
    "catalog": {
        "provider": "spotify",        # spotify | demo
        "search_provider": "",        # "" (same as provider) | itunes
        "country": "US"
    },
    "sources": {
        "liked": "liked_songs",
        "curated": "",
        "secondary": "",
        "artist_station": "",
        "similar_artists": [],
        "intensity": []
    },
    "rules": {
        "playlist_length": 35,
        "allow_explicit": True,
        "avoid_repeats": True,
        "avoid_repeats_window": 7,
        "mood_level": 0.5,
        "discover_level": 0.3
    },
    "engine": {
        "oversample_factor": 4,
        "request_timeout": 20.0,
        "demo_mode": False
    },
    "discovery": {
        "batch_size": 5,
        "batch_delay": 0.5,
        "per_artist_limit": 10,
        "seed_artist_limit": 5
    },
    "database": {
        "path": "database/moodmix.db"
    },
    "logging": {
        "level": "INFO",
        "path": "logs/moodmix.log",
        "max_bytes": 5242880,
        "backup_count": 3
    }
}

class ConfigManager:
    def __init__(self, config_path: str = "config/config.json"):
        self.config_path = Path(config_path)
        self.config_data: Dict[str, Any] = {}
        self.encryption_key: Optional[bytes] = None
        self._load_config()

    def _get_encryption_key(self) -> bytes:
        if self.encryption_key:
            return self.encryption_key

        key_file = self.config_path.parent / ".encryption_key"
        if key_file.exists():
            with open(key_file, 'rb') as f:
                self.encryption_key = f.read()
        else:
            key_file.parent.mkdir(parents=True, exist_ok=True)
            self.encryption_key = Fernet.generate_key()
            with open(key_file, 'wb') as f:
                f.write(self.encryption_key)
            key_file.chmod(0o600)
        return self.encryption_key

    def _load_config(self):
        self.config_data = copy.deepcopy(DEFAULT_CONFIG)
        if not self.config_path.exists():
            return

        with open(self.config_path, 'r', encoding='utf-8') as f:
            user_config = json.load(f)
        self._merge(self.config_data, user_config)

    @classmethod
    def _merge(cls, base: Dict[str, Any], override: Dict[str, Any]):
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                cls._merge(base[key], value)
            else:
                base[key] = value

    def _save_config(self):
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, 'w', encoding='utf-8') as f:
            json.dump(self.config_data, f, indent=2)

    def get(self, key: str, default: Any = None) -> Any:
        keys = key.split('.')
        value = self.config_data

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any):
        keys = key.split('.')
        config = self.config_data

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value
        self._save_config()

    def set_secret(self, key: str, value: str):
        """Store a value encrypted with the local Fernet key"""
        token = Fernet(self._get_encryption_key()).encrypt(value.encode('utf-8'))
        self.set(key, f"enc:{token.decode('ascii')}")

    def get_secret(self, key: str, default: str = "") -> str:
        value = self.get(key, default)
        if not isinstance(value, str) or not value.startswith('enc:'):
            return value
        try:
            return Fernet(self._get_encryption_key()).decrypt(value[4:].encode('ascii')).decode('utf-8')
        except InvalidToken:
            raise ValueError(f"Could not decrypt '{key}' - encryption key does not match")

    def get_spotify_config(self) -> Dict[str, str]:
        spotify = dict(self.get('spotify', {}))
        spotify['client_secret'] = self.get_secret('spotify.client_secret')
        return spotify

    def get_catalog_config(self) -> Dict[str, str]:
        return self.get('catalog', {})

    def get_rules(self) -> Dict[str, Any]:
        return self.get('rules', {})

    def get_engine_config(self) -> Dict[str, Any]:
        return self.get('engine', {})

    def get_discovery_config(self) -> Dict[str, Any]:
        return self.get('discovery', {})

    def get_database_config(self) -> Dict[str, str]:
        return self.get('database', {})

    def get_logging_config(self) -> Dict[str, str]:
        return self.get('logging', {})

    def is_demo_mode(self) -> bool:
        return bool(self.get('engine.demo_mode', False)) or self.get('catalog.provider') == 'demo'

    # Config Store

    def get_linked_source_id(self, channel_key: str) -> Optional[str]:
        if channel_key not in CHANNEL_SOURCE_KEYS:
            raise ValueError(f"Unknown channel key: {channel_key}")
        source_id = self.get(f'sources.{channel_key}')
        return source_id or None

    def link_source(self, channel_key: str, source_id: Optional[str]):
        if channel_key not in CHANNEL_SOURCE_KEYS:
            raise ValueError(f"Unknown channel key: {channel_key}")
        self.set(f'sources.{channel_key}', source_id or "")

    def get_similar_artists(self) -> List[str]:
        return [name for name in self.get('sources.similar_artists', []) if name]

    def get_intensity_sources(self) -> List[str]:
        return [source for source in self.get('sources.intensity', []) if source]

    def validate_config(self) -> Dict[str, bool]:
        provider = self.get('catalog.provider', 'spotify')
        validation = {
            'spotify': bool(self.get('spotify.client_id')) and bool(self.get('spotify.client_secret')),
            'demo': provider == 'demo',
        }
        for key in CHANNEL_SOURCE_KEYS:
            validation[f'sources.{key}'] = bool(self.get(f'sources.{key}'))
        validation['sources.similar_artists'] = bool(self.get_similar_artists())
        validation['sources.intensity'] = bool(self.get_intensity_sources())
        validation['catalog_provider'] = provider
        return validation

config_manager = ConfigManager()
