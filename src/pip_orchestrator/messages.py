"""User-facing text written to output sinks."""

INSTALL_PIP_PROMPT = "pip is not installed for this interpreter. Download and install it now?"

PIP_INSTALLING = "-----Installing pip-----"
PIP_INSTALL_SUCCEEDED = "-----Successfully installed pip-----"
PIP_INSTALL_FAILED = "-----Failed to install pip (exit code: {exit_code})-----"

PACKAGE_INSTALLING = "-----Installing '{package}'-----"
PACKAGE_INSTALL_SUCCEEDED = "-----Successfully installed '{package}'-----"
PACKAGE_INSTALL_FAILED = "-----Failed to install '{package}' (exit code: {exit_code})-----"

PACKAGE_UNINSTALLING = "-----Uninstalling '{package}'-----"
PACKAGE_UNINSTALL_SUCCEEDED = "-----Successfully uninstalled '{package}'-----"
PACKAGE_UNINSTALL_FAILED = "-----Failed to uninstall '{package}' (exit code: {exit_code})-----"

# Reported when a process gave no exit code
UNKNOWN_EXIT_CODE = -1
