# rentalcrm/utils/slugify.py
import re
import secrets
import string

_ALPHABET = string.ascii_lowercase + string.digits


def generate_slug(text: str) -> str:
    slug = text.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


def generate_unique_slug(base_slug: str, length: int = 6) -> str:
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(length))
    return f"{base_slug}-{suffix}"
