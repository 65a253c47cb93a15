import sys
from .base import *

RUNNING_PYTEST = 'pytest' in sys.modules or any('pytest' in arg for arg in sys.argv)

if RUNNING_PYTEST:
    from .test import *
else:
    if 'env' in os.environ:
        if os.environ['env'] == 'prod':
            from .prod import *
    else:
        from .dev import *
