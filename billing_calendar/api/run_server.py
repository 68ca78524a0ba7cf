import os

import uvicorn
from dotenv import load_dotenv


def main() -> None:
    load_dotenv()
    host = os.getenv("BILLING_API_HOST", "0.0.0.0")
    port = int(os.getenv("BILLING_API_PORT", "8080"))
    uvicorn.run("billing_calendar.api.app:app", host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
