from src.rootca.ca.pem import LoadedRootCA, load_root_ca
from src.rootca.chain_check import ChainCheckReport
from src.rootca.leaf.issuer import IssuedLeaf
from src.rootca.leaf.openssl import OpenSSLError
from src.shared.config import Settings

# Pydantic Settings
Settings.model_config
Settings.APP_ENV
Settings.CA_OUTPUT_DIR
Settings.CHAIN_CHECK_DIR

# Dataclass fields read by callers and tests
IssuedLeaf.common_name
IssuedLeaf.csr_path
ChainCheckReport.base_dir
LoadedRootCA.private_key
LoadedRootCA.certificate

# Attributes kept on the exception for callers
OpenSSLError.command
OpenSSLError.returncode
OpenSSLError.stderr

# Public API used by tests and downstream scripts
load_root_ca
