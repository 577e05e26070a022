"""Static asset catalog."""

from __future__ import annotations

from idle_trader.models import Asset, AssetCategory

ASSETS: tuple[Asset, ...] = (
    # Stocks
    Asset(
        id="tech1",
        name="ByteWorks Inc.",
        symbol="BYTE",
        base_price=100.0,
        volatility=0.05,
        category=AssetCategory.STOCK,
        unlock_price=0.0,
        description="Stable software conglomerate, a safe first position",
    ),
    Asset(
        id="retail1",
        name="Cartwheel Retail",
        symbol="CART",
        base_price=45.0,
        volatility=0.06,
        category=AssetCategory.STOCK,
        unlock_price=12_500.0,
        description="Nationwide retail chain with steady demand",
    ),
    Asset(
        id="bio1",
        name="Helix Biotech",
        symbol="HLX",
        base_price=220.0,
        volatility=0.12,
        category=AssetCategory.STOCK,
        unlock_price=25_000.0,
        description="Drug pipeline news keeps this one jumpy",
    ),
    Asset(
        id="energy1",
        name="Solaris Power",
        symbol="SOLR",
        base_price=75.0,
        volatility=0.09,
        category=AssetCategory.STOCK,
        unlock_price=50_000.0,
        description="Renewable utility riding the energy transition",
    ),
    # Commodities
    Asset(
        id="gold",
        name="Gold",
        symbol="XAU",
        base_price=1_900.0,
        volatility=0.03,
        category=AssetCategory.COMMODITY,
        unlock_price=20_000.0,
        description="The classic store of value",
    ),
    Asset(
        id="oil",
        name="Crude Oil",
        symbol="WTI",
        base_price=80.0,
        volatility=0.08,
        category=AssetCategory.COMMODITY,
        unlock_price=35_000.0,
        description="Supply shocks move this barrel fast",
    ),
    Asset(
        id="silver",
        name="Silver",
        symbol="XAG",
        base_price=24.0,
        volatility=0.07,
        category=AssetCategory.COMMODITY,
        unlock_price=75_000.0,
        description="Industrial and precious in equal measure",
    ),
    Asset(
        id="wheat",
        name="Wheat",
        symbol="ZW",
        base_price=6.5,
        volatility=0.1,
        category=AssetCategory.COMMODITY,
        unlock_price=150_000.0,
        description="Weather-driven agricultural staple",
    ),
    # Crypto
    Asset(
        id="btc",
        name="Bitcoin",
        symbol="BTC",
        base_price=30_000.0,
        volatility=0.15,
        category=AssetCategory.CRYPTO,
        unlock_price=100_000.0,
        description="The original cryptocurrency",
    ),
    Asset(
        id="eth",
        name="Ethereum",
        symbol="ETH",
        base_price=2_000.0,
        volatility=0.18,
        category=AssetCategory.CRYPTO,
        unlock_price=250_000.0,
        description="Programmable money with programmable swings",
    ),
    Asset(
        id="doge",
        name="Dogecoin",
        symbol="DOGE",
        base_price=0.25,
        volatility=0.3,
        category=AssetCategory.CRYPTO,
        unlock_price=500_000.0,
        description="Meme coin, very high risk",
    ),
    Asset(
        id="sol",
        name="Solana",
        symbol="SOL",
        base_price=95.0,
        volatility=0.22,
        category=AssetCategory.CRYPTO,
        unlock_price=1_000_000.0,
        description="High throughput chain for late-game speculation",
    ),
)
