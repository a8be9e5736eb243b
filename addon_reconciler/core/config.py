import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(Path(__file__).parent.parent.parent.absolute(), '.env'))

PACKAGE_ROOT = Path(__file__).absolute().parent.parent

CHARTS_PATH = Path(os.getenv('ADDON_RECONCILER_CHARTS_PATH', str(Path(PACKAGE_ROOT, 'charts'))))

IMAGE_VECTOR_PATH = Path(os.getenv('ADDON_RECONCILER_IMAGE_VECTOR_PATH', str(Path(CHARTS_PATH, 'images.yaml'))))

# Namespace in the managed cluster that receives addon bundles and addon workloads
ADDON_NAMESPACE = os.getenv('ADDON_RECONCILER_NAMESPACE', 'kube-system')

# Seconds to wait for a single remote API call
REQUEST_TIMEOUT = int(os.getenv('ADDON_RECONCILER_REQUEST_TIMEOUT', '30'))

LOG_LEVEL = os.getenv('ADDON_RECONCILER_LOG_LEVEL', 'INFO').upper()

CERTIFICATE_VALIDITY_DAYS = int(os.getenv('ADDON_RECONCILER_CERTIFICATE_VALIDITY_DAYS', '3650'))
