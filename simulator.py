"""Interactive CLI simulator — request OTPs without WhatsApp credentials."""

import asyncio

from whatsapp_otp.config import settings
from whatsapp_otp.database.engine import async_session_factory, init_db
from whatsapp_otp.errors import OTPServiceError, RateLimitError
from whatsapp_otp.services.gateway import ConsoleGateway
from whatsapp_otp.services.issuer import OTPIssuer
from whatsapp_otp.services.otp_store import OTPStore
from whatsapp_otp.services.rate_limiter import MAX_ATTEMPTS, RateLimiter

GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
BOLD = "\033[1m"
RESET = "\033[0m"


async def main() -> None:
    print(f"\n{BOLD}{'=' * 52}")
    print(f"  📱  WhatsApp OTP — Issuance Simulator")
    print(f"{'=' * 52}{RESET}\n")

    # ── Initialise database (stores consent records) ─────
    await init_db()

    print(f"{DIM}Tip: try +91 98765-43210, 1234567890, or 6 requests in a row{RESET}")
    print(f"{DIM}     Type 'quit' to exit{RESET}\n")

    # ── Wire the services with a console gateway ─────────
    otp_store = OTPStore()
    rate_limiter = RateLimiter()
    issuer = OTPIssuer(
        otp_store,
        rate_limiter,
        ConsoleGateway(),
        async_session_factory,
        expiry_minutes=settings.otp_expiry_minutes,
    )

    while True:
        try:
            phone = input(f"{YELLOW}Phone number: {RESET}").strip()
            if phone.lower() == "quit":
                break
            consent = input(f"{YELLOW}Consent given? [y/N]: {RESET}").strip().lower() == "y"
        except (KeyboardInterrupt, EOFError):
            print()
            break

        try:
            result = await issuer.issue_otp(phone, consent)
        except RateLimitError as exc:
            print(f"{RED}429{RESET} {exc.message}\n")
            continue
        except OTPServiceError as exc:
            print(f"{RED}Error:{RESET} {exc.message}\n")
            continue

        record = otp_store.lookup(result.phone)
        print(
            f"{GREEN}{BOLD}Sent{RESET} code {record.code} to {result.phone} "
            f"(id {result.delivery_id}, expires in {result.expires_in_seconds}s, "
            f"{len(rate_limiter.attempts_for(result.phone))}/{MAX_ATTEMPTS} requests this hour)\n"
        )

    print(f"{DIM}Goodbye!{RESET}")


if __name__ == "__main__":
    asyncio.run(main())
