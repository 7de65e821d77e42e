
"""
Entry point script for the tiny-agent application.
This allows running the app directly from the project root.
"""
from tiny_agent.main import main

if __name__ == "__main__":
    main()
