def get_logs(caplog, msg):
    records = []
    for record in caplog.records:
        if msg in record.message:
            records.append(record)
    return records
