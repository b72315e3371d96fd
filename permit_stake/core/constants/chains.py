CHAIN_ID_ETHEREUM = 1
CHAIN_ID_GNOSIS = 100
CHAIN_ID_POLYGON = 137
CHAIN_ID_SEPOLIA = 11155111

POA_MIDDLEWARE_CHAIN_IDS: set[int] = {
    CHAIN_ID_GNOSIS,
    CHAIN_ID_POLYGON,
}

CHAIN_EXPLORER_URLS: dict[int, str] = {
    CHAIN_ID_ETHEREUM: "https://etherscan.io/",
    CHAIN_ID_GNOSIS: "https://gnosisscan.io/",
    CHAIN_ID_POLYGON: "https://polygonscan.com/",
    CHAIN_ID_SEPOLIA: "https://sepolia.etherscan.io/",
}


def explorer_tx_url(chain_id: int, tx_hash: str) -> str | None:
    base = CHAIN_EXPLORER_URLS.get(int(chain_id))
    if not base:
        return None
    return f"{base}tx/{tx_hash}"
