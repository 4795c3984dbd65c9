from medichat.services.store import RecordStore, get_record_store


def get_store() -> RecordStore:
    return get_record_store()
