import sys
from pathlib import Path

from recipe_manager.config import get_settings
from recipe_manager.db import SessionLocal, init_db
from recipe_manager.logging import setup_logging
from recipe_manager.seed import import_seed, load_seed


def main():
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db()
    if len(sys.argv) > 1:
        p = Path(sys.argv[1])
    else:
        p = Path(__file__).resolve().parents[1] / 'data' / 'seed.json'
    if not p.exists():
        print(f'{p} not found')
        return
    db = SessionLocal()
    try:
        counts = import_seed(db, load_seed(p))
    finally:
        db.close()
    added = ', '.join(f'{n} {section}' for section, n in counts.items())
    print(f'Imported {added}')


if __name__ == '__main__':
    main()
