"""
Kindroid Bots - Startup Validation
Ensures configuration is valid before the bots start.
"""

import sys
from pathlib import Path
from typing import List, Tuple

import config
from config import BotConfig
from logger import Colors


def ok(msg): print(f"{Colors.OK}✓{Colors.END} {msg}")
def warn(msg): print(f"{Colors.WARN}⚠{Colors.END} {msg}")
def fail(msg): print(f"{Colors.FAIL}✗{Colors.END} {msg}")


BASE_DIR = Path(__file__).parent

# Issues carrying this prefix are warnings; every other issue blocks startup
WARNING = "warning: "


def check_env_file() -> Tuple[bool, List[str]]:
    """Check if a .env file exists. Missing is only a warning: env vars may come from elsewhere."""
    if (BASE_DIR / ".env").exists():
        ok(".env file found")
        return True, []

    warn(".env file not found, using process environment only")
    return False, [f"{WARNING}no .env file"]


def check_kindroid_settings() -> Tuple[bool, List[str]]:
    """Check the Kindroid API key and URL."""
    issues = []

    if config.KINDROID_API_KEY:
        ok("KINDROID_API_KEY is set")
    else:
        fail("KINDROID_API_KEY not set in .env!")
        issues.append("missing KINDROID_API_KEY")

    url = config.KINDROID_INFER_URL or ""
    if url.startswith(("http://", "https://")):
        ok(f"KINDROID_INFER_URL: {url[:60]}")
    else:
        fail(f"KINDROID_INFER_URL looks invalid: '{url}'")
        issues.append("invalid KINDROID_INFER_URL")

    return len(issues) == 0, issues


def check_bot_configs(bots: List[BotConfig]) -> Tuple[bool, List[str]]:
    """Check that at least one bot is configured and ids are unique."""
    if not bots:
        fail("No bots configured! Set BOT_TOKEN_1 / SHARED_AI_CODE_1 or create bots.json")
        return False, ["missing bot configuration"]

    issues = []
    seen = set()
    for bot in bots:
        if bot.id in seen:
            fail(f"Duplicate bot id '{bot.id}'")
            issues.append(f"invalid bots: duplicate id {bot.id}")
        seen.add(bot.id)

        # Discord tokens are three dot-separated segments
        if bot.token.count('.') < 2:
            warn(f"[{bot.id}] token looks invalid (wrong format)")
            issues.append(f"{WARNING}{bot.id}: token looks malformed")
        else:
            filter_state = "on" if bot.enable_filter else "off"
            ok(f"[{bot.id}] token set | filter {filter_state}")

    return len(issues) == 0, issues


def validate_startup(bots: List[BotConfig]) -> bool:
    """
    Run all startup validation checks.

    Returns:
        True if no critical issue was found, False otherwise.
    """
    print(f"\n{Colors.BOLD}{'='*50}")
    print("Kindroid Bots - Startup Validation")
    print(f"{'='*50}{Colors.END}\n")

    all_issues = []

    print(f"{Colors.BOLD}[1/3] Configuration Files{Colors.END}")
    all_issues.extend(check_env_file()[1])

    print(f"\n{Colors.BOLD}[2/3] Kindroid API{Colors.END}")
    all_issues.extend(check_kindroid_settings()[1])

    print(f"\n{Colors.BOLD}[3/3] Bots{Colors.END}")
    all_issues.extend(check_bot_configs(bots)[1])

    print(f"\n{Colors.BOLD}{'='*50}{Colors.END}")

    critical_issues = [i for i in all_issues if not i.startswith(WARNING)]

    if not all_issues:
        print(f"{Colors.OK}{Colors.BOLD}✓ All checks passed! Starting bots...{Colors.END}")
        return True
    elif critical_issues:
        print(f"{Colors.FAIL}{Colors.BOLD}✗ {len(critical_issues)} critical issue(s) found:{Colors.END}")
        for issue in critical_issues:
            print(f"  • {issue}")
        print(f"\n{Colors.WARN}Please fix these issues and try again.{Colors.END}")
        return False
    else:
        print(f"{Colors.WARN}{Colors.BOLD}⚠ {len(all_issues)} warning(s):{Colors.END}")
        for issue in all_issues:
            print(f"  • {issue}")
        print(f"\n{Colors.INFO}Proceeding with warnings...{Colors.END}")
        return True


if __name__ == "__main__":
    # Run standalone validation
    success = validate_startup(config.load_bot_configs())
    sys.exit(0 if success else 1)
