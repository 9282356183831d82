"""Studio settings persisted as ``category.name`` rows."""
import logging
import time
from copy import deepcopy
from threading import Lock
from sqlalchemy import select
from ..models import unit_of_work, db, Setting

logger = logging.getLogger(__name__)

# Defaults applied when a key has never been saved
DEFAULT_SETTINGS = {
    'studioInfo': {
        'name': {'value': 'Tattoo Studio', 'description': 'Studio display name'},
        'email': {'value': '', 'description': 'Public contact email'},
        'phone': {'value': '', 'description': 'Public contact phone'},
        'address': {'value': '', 'description': 'Studio street address'},
    },
    'calCom': {
        'autoSync': {'value': True, 'description': 'Sync bookings from Cal.com automatically'},
        'emailNotifications': {'value': True, 'description': 'Email on new Cal.com bookings'},
        'webhookUrl': {'value': '', 'description': 'Cal.com webhook endpoint'},
    },
    'appearance': {
        'darkMode': {'value': False, 'description': 'Use the dark dashboard theme'},
        'compactSidebar': {'value': False, 'description': 'Collapse the navigation sidebar'},
    },
    'notifications': {
        'newBookings': {'value': True, 'description': 'Notify on new bookings'},
        'payments': {'value': True, 'description': 'Notify on received payments'},
        'dailySummary': {'value': False, 'description': 'Send a daily summary email'},
    },
}


class SettingsService:
    """Read and write studio settings with a short-lived read cache."""

    def __init__(self, cache_ttl=60, clock=time.monotonic):
        self.cache_ttl = cache_ttl
        self._clock = clock
        self._cache = None
        self._cached_at = 0.0
        self._lock = Lock()

    def invalidate(self):
        with self._lock:
            self._cache = None

    def initialize_defaults(self):
        """Insert any default keys that are missing. Returns the number added."""
        existing = set(db.session.execute(select(Setting.key)).scalars())
        added = 0
        with unit_of_work() as session:
            for category, values in DEFAULT_SETTINGS.items():
                for name, entry in values.items():
                    key = f"{category}.{name}"
                    if key in existing:
                        continue
                    session.add(Setting(key=key, value=entry['value'], category=category,
                                        description=entry['description']))
                    added += 1
        if added:
            logger.info(f"Initialized {added} default settings")
            self.invalidate()
        return added

    def get_settings(self):
        """Return settings nested as ``{category: {name: value}}``, defaults filled in."""
        with self._lock:
            if self._cache is not None and self._clock() - self._cached_at < self.cache_ttl:
                return deepcopy(self._cache)

        settings = {
            category: {name: entry['value'] for name, entry in values.items()}
            for category, values in DEFAULT_SETTINGS.items()
        }
        for row in db.session.execute(select(Setting)).scalars():
            category, _, name = row.key.partition('.')
            if not name:
                continue
            settings.setdefault(category, {})[name] = row.value

        with self._lock:
            self._cache = settings
            self._cached_at = self._clock()
        return deepcopy(settings)

    def update_settings(self, updates):
        """Upsert flattened ``{'category.name': value}`` pairs in one transaction."""
        keys = list(updates)
        existing = {
            row.key: row for row in db.session.execute(select(Setting).where(Setting.key.in_(keys))).scalars()
        }
        with unit_of_work() as session:
            for key, value in updates.items():
                row = existing.get(key)
                if row is None:
                    category = key.partition('.')[0]
                    description = DEFAULT_SETTINGS.get(category, {}).get(key.partition('.')[2], {}).get('description')
                    session.add(Setting(key=key, value=value, category=category, description=description))
                else:
                    row.value = value
        logger.info(f"Updated settings: {', '.join(sorted(keys))}")
        self.invalidate()
        return self.get_settings()
