"""Fırın POS uzak deposunu (DynamoDB) hazırlar veya kaldırır.

Kullanım:
    python -m data_layer.scripts.setup_aws                       # Tabloları kur, ürünleri yükle
    python -m data_layer.scripts.setup_aws --no-seed             # Yalnızca tabloları kur
    python -m data_layer.scripts.setup_aws --delete              # Tabloları kaldır
    python -m data_layer.scripts.setup_aws --region eu-west-1 --prefix Demo

Varsayılan region ve tablo öneki ``.env`` / ortam değişkenlerinden okunur.
"""
from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Optional

from data_layer.infrastructure.dynamodb_setup import create_tables, delete_tables, load_sample_products
from src.settings import Settings

VALUE_FLAGS = {"--region": "region", "--prefix": "prefix"}


@dataclass
class SetupOptions:
    region: str
    prefix: str
    delete: bool = False
    seed: bool = True


def parse_args(argv: list[str], settings: Optional[Settings] = None) -> SetupOptions:
    """Komut satırını okur; bilinmeyen veya değersiz bayrakta ValueError fırlatır."""
    settings = settings or Settings.from_env()
    options = SetupOptions(region=settings.region_name, prefix=settings.table_prefix)

    remaining = list(argv)
    while remaining:
        flag = remaining.pop(0)
        if flag == "--delete":
            options.delete = True
        elif flag == "--no-seed":
            options.seed = False
        elif flag in VALUE_FLAGS:
            if not remaining or remaining[0].startswith("--"):
                raise ValueError(f"{flag} için değer gerekli")
            setattr(options, VALUE_FLAGS[flag], remaining.pop(0))
        else:
            raise ValueError(f"Bilinmeyen argüman: {flag}")
    return options


def run_setup(options: SetupOptions) -> None:
    print(f"Fırın POS uzak deposu kuruluyor ({options.region}, önek: {options.prefix})")
    create_tables(options.region, options.prefix)
    if options.seed:
        load_sample_products(options.region, options.prefix)
    print("Kurulum tamam.")


def run_delete(options: SetupOptions) -> None:
    print(f"Fırın POS tabloları kaldırılıyor ({options.region}, önek: {options.prefix})")
    delete_tables(options.region, options.prefix)
    print("Kaldırma tamam.")


def main(argv: Optional[list[str]] = None) -> int:
    try:
        options = parse_args(sys.argv[1:] if argv is None else argv)
    except ValueError as e:
        print(f"Hata: {e}", file=sys.stderr)
        print(__doc__, file=sys.stderr)
        return 2

    if options.delete:
        run_delete(options)
    else:
        run_setup(options)
    return 0


if __name__ == "__main__":
    sys.exit(main())
