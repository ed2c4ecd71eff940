from django.core.management.base import BaseCommand, CommandError
from core.models import Business
from reviews.invitations import InvitationDispatcher


class Command(BaseCommand):
    help = 'Send review request emails to clients of a business'

    def add_arguments(self, parser):
        parser.add_argument('business', type=str, help='Business UUID')
        parser.add_argument('clients', nargs='+', type=str, help='Client UUIDs')

    def handle(self, *args, **options):
        business = Business.objects.by_public_id(options['business']).first()
        if business is None:
            raise CommandError(f"Business {options['business']} not found")

        dispatcher = InvitationDispatcher(business, actor=business.owner)
        self.stdout.write(f'Sending review requests from {dispatcher.from_header}')

        report = dispatcher.dispatch(options['clients'])

        for sent in report.sent:
            self.stdout.write(self.style.SUCCESS(f"Sent to {sent['email']} ({sent['clientId']})"))
        for failed in report.failed:
            self.stdout.write(self.style.ERROR(f"Failed for {failed['clientId']}: {failed['error']}"))
        for client_id in report.missing:
            self.stdout.write(self.style.WARNING(f'Client {client_id} not found for this business'))

        self.stdout.write(
            f'{len(report.sent)} sent, {len(report.failed)} failed, {len(report.missing)} missing'
        )
