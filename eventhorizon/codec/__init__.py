"""Namespace for event and command codecs; it currently holds none."""