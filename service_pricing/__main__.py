"""Allow running as: python -m service_pricing"""

import sys

from service_pricing.main import main

if __name__ == "__main__":
    main(sys.argv[1:])
