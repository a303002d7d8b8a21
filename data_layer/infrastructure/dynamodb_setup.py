"""DynamoDB tablo oluşturma ve örnek veri yükleme.

3 tablo: <prefix>Products, <prefix>Sales, <prefix>Shifts
Her tablonun hash anahtarı ``pk`` (varlık id'sinin string hali).
"""
import os
import sys

import boto3
from botocore.exceptions import ClientError
from botocore.config import Config

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
import env_loader

from src.sync.remote_store import KEY_ATTRIBUTE, DynamoDBCollectionStore, collection_table_name

REGION = os.environ.get("AWS_DEFAULT_REGION", "us-west-2")
TABLE_PREFIX = os.environ.get("POS_TABLE_PREFIX", "Bakery")
BOTO_CONFIG = Config(retries={"max_attempts": 3})

COLLECTIONS = ["products", "sales", "shifts"]


def table_definitions(prefix: str = TABLE_PREFIX) -> list:
    return [
        {
            "TableName": collection_table_name(prefix, collection),
            "KeySchema": [
                {"AttributeName": KEY_ATTRIBUTE, "KeyType": "HASH"},
            ],
            "AttributeDefinitions": [
                {"AttributeName": KEY_ATTRIBUTE, "AttributeType": "S"},
            ],
            "BillingMode": "PAY_PER_REQUEST",
        }
        for collection in COLLECTIONS
    ]


def create_tables(region: str = REGION, prefix: str = TABLE_PREFIX):
    """Tüm DynamoDB tablolarını oluşturur."""
    dynamodb = boto3.client("dynamodb", region_name=region, config=BOTO_CONFIG)

    for table_def in table_definitions(prefix):
        table_name = table_def["TableName"]
        try:
            dynamodb.describe_table(TableName=table_name)
            print(f"  ⏭️  {table_name} zaten mevcut, atlanıyor")
        except ClientError as e:
            if e.response["Error"]["Code"] == "ResourceNotFoundException":
                print(f"  🔨 {table_name} oluşturuluyor...")
                dynamodb.create_table(**table_def)
                # Tablonun aktif olmasını bekle
                waiter = dynamodb.get_waiter("table_exists")
                waiter.wait(TableName=table_name)
                print(f"  ✓  {table_name} oluşturuldu")
            else:
                raise


def load_sample_products(region: str = REGION, prefix: str = TABLE_PREFIX):
    """Products tablosu boşsa örnek fırın ürünlerini yükler."""
    from src.workflows.stock import SAMPLE_PRODUCTS

    store = DynamoDBCollectionStore(table_prefix=prefix, region_name=region)
    if store.query_all("products"):
        print("  ⏭️  Products zaten dolu, atlanıyor")
        return
    for product in SAMPLE_PRODUCTS:
        store.upsert("products", {**product, "version": 1, "updatedAt": ""})
    print(f"  ✓  Products: {len(SAMPLE_PRODUCTS)} kayıt yüklendi")


def delete_tables(region: str = REGION, prefix: str = TABLE_PREFIX):
    """Tüm tabloları siler (dikkatli kullan)."""
    dynamodb = boto3.client("dynamodb", region_name=region, config=BOTO_CONFIG)
    for table_def in table_definitions(prefix):
        table_name = table_def["TableName"]
        try:
            dynamodb.delete_table(TableName=table_name)
            print(f"  🗑️  {table_name} silindi")
        except ClientError:
            print(f"  ⏭️  {table_name} bulunamadı, atlanıyor")


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "--delete":
        print("🗑️  Tablolar siliniyor...")
        delete_tables()
    else:
        print("🏗️  DynamoDB tabloları oluşturuluyor...\n")
        create_tables()
        load_sample_products()
