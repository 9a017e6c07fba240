"""
Management command for attribute encryption keys and configuration.
"""

from django.core.management.base import BaseCommand, CommandError

from attr_encryption.attributes import AttrEncrypted
from attr_encryption.exceptions import EncryptionError
from attr_encryption.utils import (
    audit_encryption_usage,
    generate_encryption_key,
    validate_encryption_config,
)


class Command(BaseCommand):
    help = 'Manage attribute-level encryption keys and configuration'

    def add_arguments(self, parser):
        subparsers = parser.add_subparsers(
            dest='subcommand',
            help='Attribute encryption subcommands'
        )

        test_parser = subparsers.add_parser('test', help='Test encryption/decryption')
        test_parser.add_argument(
            '--value',
            type=str,
            default='Hello, World!',
            help='Value to encrypt and decrypt'
        )
        test_parser.add_argument(
            '--key',
            type=str,
            default=None,
            help='Key to test with (a random key is generated if omitted)'
        )

        subparsers.add_parser('generate-key', help='Generate a new encryption key')
        subparsers.add_parser('validate', help='Validate encryption configuration')
        subparsers.add_parser('audit', help='Audit encrypted attributes in models')

    def handle(self, *args, **options):
        subcommand = options.get('subcommand')

        if not subcommand:
            self.print_help('manage.py', 'attr_encryption')
            return

        if subcommand == 'test':
            self.test_encryption(options['value'], options['key'])
        elif subcommand == 'generate-key':
            self.generate_key()
        elif subcommand == 'validate':
            self.validate_config()
        elif subcommand == 'audit':
            self.audit_usage()

    def test_encryption(self, test_value, key):
        """Round-trip a value through a throwaway encrypted attribute."""
        self.stdout.write(self.style.NOTICE(f"Testing encryption with value: {test_value}"))

        class Probe(AttrEncrypted):
            pass

        Probe.attr_encrypted('value', key=key or generate_encryption_key(), encode=True)

        try:
            encrypted = Probe.encrypt_value(test_value)
            self.stdout.write(f"Encrypted: {encrypted.strip()[:50]}")

            decrypted = Probe.decrypt_value(encrypted)
            self.stdout.write(f"Decrypted: {decrypted}")
        except EncryptionError as e:
            raise CommandError(f"Encryption test failed: {str(e)}")

        if decrypted == test_value:
            self.stdout.write(self.style.SUCCESS("Encryption/decryption successful"))
        else:
            raise CommandError("Decrypted value doesn't match original")

    def generate_key(self):
        """Generate a new encryption key."""
        self.stdout.write(self.style.NOTICE("Generating new encryption key..."))

        new_key = generate_encryption_key()

        self.stdout.write(self.style.SUCCESS(f"Generated key (base64): {new_key}"))
        self.stdout.write(self.style.WARNING("Store this key outside version control"))

    def validate_config(self):
        """Validate encryption configuration."""
        self.stdout.write(self.style.NOTICE("Validating encryption configuration..."))

        try:
            validate_encryption_config()
        except EncryptionError as e:
            self.stdout.write(self.style.ERROR(f"Configuration invalid: {str(e)}"))
            raise CommandError("Please fix the configuration errors above")

        self.stdout.write(self.style.SUCCESS("Configuration is valid"))

    def audit_usage(self):
        """Audit encrypted attributes across models."""
        self.stdout.write(self.style.NOTICE("Auditing encryption usage..."))

        stats = audit_encryption_usage()

        self.stdout.write("\nEncryption Usage Summary:")
        self.stdout.write(f"  Models with encryption: {stats['encrypted_models']}")
        self.stdout.write(f"  Encrypted attributes: {stats['encrypted_attributes']}")

        for mode, count in stats['attributes_by_mode'].items():
            self.stdout.write(f"  {mode}: {count}")

        for model_info in stats['models']:
            self.stdout.write(f"\n  {model_info['app_label']}.{model_info['model_name']}:")
            for attribute in model_info['encrypted_attributes']:
                self.stdout.write(
                    f"    - {attribute['name']} -> {attribute['attribute']} ({attribute['mode']})"
                )
