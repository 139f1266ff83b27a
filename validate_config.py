#!/usr/bin/env python3
"""
Checks the role group sync configuration before a run
"""

import sys
from dotenv import load_dotenv

from config import load_config, missing_variables
from errors import ConfigurationError

# Load environment variables
load_dotenv()


def mask(value: str) -> str:
    """Hide all but the last four characters of a secret."""
    if not value:
        return ""
    if len(value) <= 4:
        return "*" * len(value)
    return "*" * (len(value) - 4) + value[-4:]


def validate_config() -> bool:
    """Validate that all required configuration is set and parseable"""
    missing = missing_variables()
    if missing:
        print("❌ Missing required configuration variables:")
        for var in missing:
            print(f"   - {var}")
        return False

    try:
        load_config()
    except ConfigurationError as e:
        print(f"❌ Invalid configuration: {e}")
        return False

    print("✅ All required configuration variables are set")
    return True


def display_config():
    """Display current configuration (masking sensitive values)"""
    config = load_config()
    print("\n📋 Current Configuration:")
    print(f"   Tenant ID: {config.tenant_id}")
    print(f"   Client ID: {config.client_id}")
    print(f"   Client Secret: {mask(config.client_secret)}")
    print(f"   Privileged group: {config.privileged_group}")
    print(f"   Non-privileged group: {config.nonprivileged_group}")
    print(f"   Union group: {config.all_group}")
    print(f"   Add batch size: {config.add_batch_size}")
    print(f"   Member page size: {config.page_size}")
    print(f"   Dry Run Mode: {config.dry_run}")
    print()


if __name__ == "__main__":
    print("🔍 Entra Role Group Sync - Configuration Validator\n")

    if validate_config():
        display_config()
        print("✅ Configuration is valid. You can now run:")
        print("   python sync.py")
    else:
        print("\n❌ Please update your .env file with the missing configuration")
        print("   See .env.example for reference")
        sys.exit(1)
