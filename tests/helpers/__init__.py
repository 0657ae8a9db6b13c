# tests/helpers/__init__.py

from haulengine.relationships import EnergyReservation, LeaseBook


def create_lease_book(*leases: EnergyReservation) -> LeaseBook:
    """
    Return a LeaseBook pre-filled with *leases* so unit tests can start from a
    known table without going through the reservation system.
    """
    book = LeaseBook()
    for lease in leases:
        book.append(lease)
    assert len(book) == len(leases)
    return book
